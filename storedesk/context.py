from __future__ import annotations

from dataclasses import dataclass

import httpx

from storedesk.adapters.local_storage import InMemoryTokenStorage, LocalTokenStorage
from storedesk.components.customers import CustomerStore
from storedesk.components.orders import OrderStore
from storedesk.components.products import ProductStore
from storedesk.components.session import SessionManager
from storedesk.components.settings import SettingsStore
from storedesk.components.users import StaffStore
from storedesk.config import ClientSettings
from storedesk.ports.credentials import CredentialStorePort
from storedesk.shell.http.client import ApiClient


@dataclass
class ClientContext:
    """
    Everything a page or command needs, built once per process.

    Consumers receive the context (or the pieces they use) explicitly;
    nothing here is reached through module-level globals.
    """

    settings: ClientSettings
    credentials: CredentialStorePort
    client: ApiClient
    session: SessionManager
    customers: CustomerStore
    orders: OrderStore
    products: ProductStore
    users: StaffStore
    store_settings: SettingsStore

    @classmethod
    def create(
        cls,
        settings: ClientSettings,
        *,
        credentials: CredentialStorePort | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> ClientContext:
        # Adapters
        if credentials is None:
            if settings.data_dir is not None:
                credentials = LocalTokenStorage(settings.data_dir, key=settings.token_key)
            else:
                credentials = InMemoryTokenStorage()

        client = ApiClient(
            settings.api_url,
            credentials,
            timeout=settings.timeout_seconds,
            transport=transport,
        )

        # Session owns the token; the client reports rejections back to it
        session = SessionManager(client, credentials)
        client.on_auth_rejected(session.handle_auth_rejected)

        return cls(
            settings=settings,
            credentials=credentials,
            client=client,
            session=session,
            customers=CustomerStore(client),
            orders=OrderStore(client),
            products=ProductStore(client),
            users=StaffStore(client),
            store_settings=SettingsStore(client),
        )

    async def aclose(self) -> None:
        await self.client.aclose()
