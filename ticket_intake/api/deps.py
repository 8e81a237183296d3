from ticket_intake.services.field_service_client import FieldServiceClient
from ticket_intake.services.intake.registry import SessionRegistry, registry

_client: FieldServiceClient | None = None


def get_field_service_client() -> FieldServiceClient:
    """Shared API client for every intake session in this process."""
    global _client
    if _client is None:
        _client = FieldServiceClient()
    return _client


async def close_field_service_client() -> None:
    global _client
    if _client is not None:
        await _client.close()
        _client = None


def get_registry() -> SessionRegistry:
    return registry
