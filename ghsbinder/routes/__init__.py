from ghsbinder.routes import chemicals, customers, files, healthcheck

__all__ = ["routers"]

routers = [
    healthcheck.router,
    customers.router,
    chemicals.router,
    files.router,
]
