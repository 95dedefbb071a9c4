from typing import Optional

from sqlalchemy.orm import Session

from intake_api.logging_config import get_logger
from intake_api.models import Tenant
from intake_api.services.alert_service import alert_warning

logger = get_logger("tenant_service")


class TenantNotConfiguredError(Exception):
    def __init__(self, recipient_address: str):
        self.recipient_address = recipient_address
        super().__init__(f"No tenant configured for WhatsApp number '{recipient_address}'")


def find_tenant_by_number(db: Session, recipient_address: str) -> Optional[Tenant]:
    """Match an enabled tenant on the bare number first, then on ``+<number>``."""
    if not recipient_address:
        return None

    for candidate in (recipient_address, f"+{recipient_address}"):
        tenant = (
            db.query(Tenant)
            .filter(Tenant.whatsapp_number == candidate, Tenant.whatsapp_enabled.is_(True))
            .order_by(Tenant.created_at.asc(), Tenant.id.asc())
            .first()
        )
        if tenant:
            return tenant
    return None


def find_fallback_tenant(db: Session, organization_type: str) -> Optional[Tenant]:
    """Oldest enabled tenant of the default organization type."""
    return (
        db.query(Tenant)
        .filter(Tenant.organization_type == organization_type, Tenant.whatsapp_enabled.is_(True))
        .order_by(Tenant.created_at.asc(), Tenant.id.asc())
        .first()
    )


def resolve_tenant(
    db: Session,
    recipient_address: str,
    *,
    fallback_enabled: bool = True,
    fallback_organization_type: str = "hospital",
) -> Optional[Tenant]:
    """Resolve the tenant that owns the inbound WhatsApp number.

    Falling back to another tenant can route a patient to the wrong hospital,
    so every fallback is logged and alerted.
    """
    tenant = find_tenant_by_number(db, recipient_address)
    if tenant:
        logger.info(
            f"Matched tenant: {tenant.name}",
            extra={"context": {"tenant_id": str(tenant.id), "recipient": recipient_address}},
        )
        return tenant

    if not fallback_enabled:
        return None

    tenant = find_fallback_tenant(db, fallback_organization_type)
    if tenant:
        logger.warning(
            f"Using fallback tenant: {tenant.name}",
            extra={"context": {"tenant_id": str(tenant.id), "recipient": recipient_address}},
        )
        alert_warning(
            "Inbound WhatsApp number not mapped, routed to fallback tenant",
            {"recipient": recipient_address, "tenant_id": str(tenant.id)},
        )
    return tenant
