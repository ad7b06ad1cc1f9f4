"""Account, activity and position queries"""

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from wstrade.auth.authenticator import Authenticator

HISTORY_INTERVALS = ("1d", "1w", "1m", "3m", "1y", "all")
ACTIVITY_TYPES = (
    "sell",
    "buy",
    "deposit",
    "withdrawal",
    "dividend",
    "institutional_transfer",
    "internal_transfer",
    "refund",
    "referral_bonus",
    "affiliate",
)
ACTIVITY_PAGE_LIMIT = 99

# Platform account types -> short names
ACCOUNT_TYPES = {
    "ca_non_registered": "personal",
    "ca_tfsa": "tfsa",
    "ca_rrsp": "rrsp",
    "ca_non_registered_crypto": "crypto",
}


def _results(response: Any) -> Any:
    if isinstance(response, dict) and "results" in response:
        return response["results"]
    return response


class Accounts:
    """Account queries for one session"""

    def __init__(self, client: "Authenticator") -> None:
        self.client = client

    async def all(self) -> dict[str, str]:
        """Ids of the open accounts keyed by personal/tfsa/rrsp/crypto"""
        accounts = {}
        for account in await self.data():
            name = ACCOUNT_TYPES.get(account.get("account_type", ""))
            if name:
                accounts[name] = account["id"]
        return accounts

    async def data(self) -> list[dict]:
        return _results(await self.client.request("GET", "/account/list"))

    async def me(self) -> dict:
        return await self.client.request("GET", "/me")

    async def person(self) -> dict:
        return await self.client.request("GET", "/person")

    async def history(self, interval: str, account_id: str) -> dict:
        if interval not in HISTORY_INTERVALS:
            raise ValueError(
                f"Unsupported interval {interval!r}, expected one of {HISTORY_INTERVALS}"
            )
        return await self.client.request(
            "GET", f"/account/history/{interval}", params={"account_id": account_id}
        )

    async def activities(
        self,
        limit: int | None = None,
        accounts: list[str] | None = None,
        types: list[str] | None = None,
    ) -> list[dict]:
        """Account activities, optionally limited and filtered by account/type

        Follows the server's bookmark pagination until `limit` activities are
        collected (or one page when no limit is given).
        """
        for activity_type in types or []:
            if activity_type not in ACTIVITY_TYPES:
                raise ValueError(f"Unsupported activity type: {activity_type!r}")
        if limit is not None and limit < 1:
            raise ValueError("limit must be positive")

        activities: list[dict] = []
        bookmark = None
        while True:
            params: dict[str, Any] = {
                "limit": min(limit - len(activities), ACTIVITY_PAGE_LIMIT)
                if limit
                else ACTIVITY_PAGE_LIMIT
            }
            if accounts:
                params["account_ids"] = ",".join(accounts)
            if types:
                params["type"] = types
            if bookmark:
                params["bookmark"] = bookmark

            response = await self.client.request(
                "GET", "/account/activities", params=params
            )
            activities.extend(response.get("results", []))
            bookmark = response.get("bookmark")

            if not limit or len(activities) >= limit or not bookmark:
                break

        return activities[:limit] if limit else activities

    async def bank_accounts(self) -> list[dict]:
        return _results(await self.client.request("GET", "/bank-accounts"))

    async def deposits(self) -> list[dict]:
        return _results(await self.client.request("GET", "/deposits"))

    async def positions(self, account_id: str) -> list[dict]:
        return _results(
            await self.client.request(
                "GET", "/account/positions", params={"account_id": account_id}
            )
        )
