"""Reference data: exchange rates, securities and security groups"""

from typing import TYPE_CHECKING, Any

from wstrade.domain.models import Ticker, TickerLike

from .securities import SecurityResolver

if TYPE_CHECKING:
    from wstrade.auth.authenticator import Authenticator

SECURITY_GROUP_PREFIX = "security-group-"


class Data:
    """Market reference data for one session"""

    def __init__(self, client: "Authenticator", resolver: SecurityResolver) -> None:
        self.client = client
        self.resolver = resolver

    async def exchange_rates(self) -> dict:
        """Current USD/CAD exchange rates on the platform"""
        return await self.client.request("GET", "/forex")

    async def get_security(self, ticker: TickerLike, extensive: bool = False) -> dict:
        """Information about a security

        Args:
            ticker: The security
            extensive: Pull the detailed report from /securities/{id}
        """
        parsed = Ticker.parse(ticker)
        if parsed.id:
            return await self.client.request("GET", f"/securities/{parsed.id}")

        security = await self.resolver.search(parsed)
        if not extensive:
            return security
        return await self.client.request("GET", f"/securities/{security['id']}")

    async def security_groups(self) -> dict[str, str]:
        """Security group names mapped to their group ids"""
        response = await self.client.request("GET", "/security-groups")
        return {
            group["name"]: group["external_security_group_id"]
            for group in response.get("results", [])
        }

    async def get_security_group(self, group: str) -> list[Any]:
        """Securities in the group, given by name or id

        Raises:
            ValueError: If a group name is not known to the platform
        """
        group_id = group
        if not group.startswith(SECURITY_GROUP_PREFIX):
            groups = await self.security_groups()
            matches = {name.lower(): gid for name, gid in groups.items()}
            if group.lower() not in matches:
                raise ValueError(f"Unknown security group: {group!r}")
            group_id = matches[group.lower()]

        response = await self.client.request(
            "GET", f"/security-groups/{group_id}/securities"
        )
        return response.get("results", [])
