class BinderError(Exception):
    """Base class for errors raised by the binder tooling."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidCustomer(BinderError):
    status_code = 400


class InvalidChemical(BinderError):
    status_code = 400


class CustomerNotFound(BinderError):
    status_code = 404

    def __init__(self, slug: str):
        super().__init__(f'Customer "{slug}" not found')
        self.slug = slug


class ChemicalNotFound(BinderError):
    status_code = 404

    def __init__(self, chemical_id: str):
        super().__init__(f'Chemical "{chemical_id}" not found')
        self.chemical_id = chemical_id


class GitHubError(BinderError):
    """A GitHub API call answered with an error status.

    Only ``GitHubNotFound`` and ``GitHubConflict`` are ever expected by callers;
    every other status stays a plain ``GitHubError`` and is fatal.
    """

    status_code = 502

    def __init__(self, api_status: int, message: str):
        super().__init__(f"GitHub API error {api_status}: {message}")
        self.api_status = api_status


class GitHubNotFound(GitHubError):
    pass


class GitHubConflict(GitHubError):
    pass


class VerificationError(BinderError):
    status_code = 502

    def __init__(self, url: str, reason: str):
        super().__init__(f"Verification failed for {url}: {reason}")
        self.url = url
        self.reason = reason


class InvalidUpload(BinderError):
    status_code = 400


class StagedFileNotFound(BinderError):
    status_code = 404

    def __init__(self, slug: str, filename: str):
        super().__init__(f'File "{filename}" not found for {slug}')
        self.filename = filename
