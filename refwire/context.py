"""Context object for refwire command execution."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING

import click

from refwire.config import RefwireConfig, require_credentials

if TYPE_CHECKING:
    import httpx

    from refwire.api_client import AdminClient
    from refwire.store_client import StoreClient


@dataclass(frozen=True)
class RefwireContext:
    """Standard context accessible via click.Context.obj.

    ``transport`` and ``store_transport`` replace the network layer of the
    admin and store clients; ``env`` replaces ``os.environ`` for credential
    lookup.
    """

    verbose: int = 0
    transport: httpx.BaseTransport | None = None
    store_transport: httpx.BaseTransport | None = None
    env: Mapping[str, str] | None = None

    def config(self) -> RefwireConfig:
        return RefwireConfig(env=self.env)

    def admin_client(self, *, interactive: bool = True) -> AdminClient:
        """Build an admin client, prompting for missing credentials."""
        from refwire.api_client import AdminClient

        credentials = require_credentials(self.config(), interactive=interactive)
        return AdminClient.from_credentials(credentials, transport=self.transport)

    def store_client(self) -> StoreClient:
        from refwire.store_client import StoreClient

        credentials = require_credentials(self.config())
        return StoreClient(credentials.store_url or "", transport=self.store_transport)

    def confirm(self, message: str, *, default: bool = False, force: bool = False) -> bool:
        """Ask a yes/no question on stderr; ``force`` skips the question.

        End of input counts as "no".
        """

        if force:
            return True
        try:
            return click.confirm(message, default=default, err=True)
        except click.Abort:
            return False


def get_context(ctx: click.Context | None = None) -> RefwireContext:
    ctx = ctx or click.get_current_context()
    obj = ctx.obj
    if isinstance(obj, RefwireContext):
        return obj
    return RefwireContext()
