from datetime import datetime
from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from ghsbinder.models import CustomerConfig

TEMPLATES_DIR = Path(__file__).parent.parent / "templates"


class Templater:
    def __init__(self, templates_dir: Path = TEMPLATES_DIR):
        self.file_loader = FileSystemLoader(templates_dir)
        self.env = Environment(
            loader=self.file_loader,
            autoescape=select_autoescape(["html"]),
            keep_trailing_newline=True,
        )
        self.site_template = self.env.get_template("ghs_binder_template.html")

    def site_data(self, config: CustomerConfig, generated_at: Optional[datetime] = None) -> dict:
        customer = config.customer_info
        chemicals = config.active_chemicals()
        generated_at = generated_at or datetime.now()
        return {
            "customer_name": customer.name,
            "customer_logo": customer.branding.logo_url,
            "customer_contact": customer.contact.phone,
            "customer_emergency": customer.contact.emergency,
            "primary_color": customer.branding.primary_color,
            "secondary_color": customer.branding.secondary_color,
            "last_updated": config.site_settings.last_updated.isoformat(),
            "generation_date": generated_at.strftime("%B %d, %Y"),
            "total_products": len(chemicals),
            "total_documents": len(chemicals) * 2,
            "complete_binder_url": config.site_settings.complete_binder.url,
            "seo": config.site_settings.seo,
            "analytics": config.site_settings.analytics,
            "chemicals": chemicals,
            "products": [chemical.model_dump(mode="json") for chemical in chemicals],
            "customer_info": {
                "name": customer.name,
                "contact": customer.contact.model_dump(mode="json"),
                "branding": customer.branding.model_dump(mode="json"),
            },
        }

    def render_site(self, config: CustomerConfig, generated_at: Optional[datetime] = None) -> str:
        return self.site_template.render(self.site_data(config, generated_at))

    def render_readme(self, config: CustomerConfig, generated_at: Optional[datetime] = None) -> str:
        chemicals = config.active_chemicals()
        return self.env.get_template("README.md.j2").render(
            customer_name=config.customer_info.name,
            total_products=len(chemicals),
            total_documents=len(chemicals) * 2,
            generation_date=(generated_at or datetime.now()).strftime("%B %d, %Y"),
        )

    def render_checklist(self, config: CustomerConfig, generated_at: Optional[datetime] = None) -> str:
        return self.env.get_template("checklist.md.j2").render(
            customer=config.customer_info,
            chemicals=config.active_chemicals(),
            site_settings=config.site_settings,
            generation_date=(generated_at or datetime.now()).strftime("%B %d, %Y"),
        )

    def render_dashboard(self, **context) -> str:
        return self.env.get_template("dashboard.html").render(**context)

    def render_binder_page(self, name: str, config: CustomerConfig,
                           generated_at: Optional[datetime] = None, **context) -> str:
        """Markdown source of one generated page of the complete binder."""
        return self.env.get_template(f"binder/{name}.md.j2").render(
            customer=config.customer_info,
            chemicals=config.active_chemicals(),
            site_settings=config.site_settings,
            generation_date=(generated_at or datetime.now()).strftime("%B %d, %Y"),
            **context,
        )
