"""
User-Agent builder for outbound resolver requests.

Provides a centralized utility to build consistent User-Agent strings
with contact information when it is configured.
"""

from dpp_graph.core.config import get_settings


def build_user_agent() -> str:
    """
    Build User-Agent string with appropriate contact info.

    ``DPP-Scanner-Agent/1.0`` on its own, or with ``(contact: ...)``
    appended when CONTACT_EMAIL is configured.
    """
    settings = get_settings()

    if settings.has_contact_email:
        return f"{settings.user_agent} (contact: {settings.contact_email})"
    return settings.user_agent
