from inventario.core.api_client import InventoryApiClient


def get_api_client() -> InventoryApiClient:
    """
    Un cliente por request; en los tests se sustituye con
    `app.dependency_overrides`.
    """
    return InventoryApiClient()
