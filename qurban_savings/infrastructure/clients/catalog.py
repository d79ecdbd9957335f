"""Catalog HTTP client for qurban package/period and fee settings lookup"""

import httpx
from qurban_savings.domain.models import (
    AnimalType,
    AvailablePeriod,
    FeeSettings,
    PackagePeriod,
    PackageType,
)
from qurban_savings.domain.exceptions import CatalogAPIError, NotFound
from qurban_savings.config import settings


class CatalogClient:
    """Client for the external package catalog and public settings API"""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or settings.catalog_api_base
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self.transport)

    async def get_package_period(self, package_period_id: str) -> PackagePeriod:
        """
        Fetch a package-period with its price and offered periods.

        Raises:
            NotFound: catalog has no such package-period
            CatalogAPIError: On timeout, HTTP errors, or invalid response
        """
        async with self._client() as client:
            try:
                response = await client.get(f"/qurban/package-periods/{package_period_id}")
                if response.status_code == 404:
                    raise NotFound(f"Package period {package_period_id} not found")
                response.raise_for_status()
                data = response.json()
                data = data.get("data", data)

                max_slots = data.get("max_slots")
                return PackagePeriod(
                    id=data["id"],
                    package_id=data["package_id"],
                    name=data["name"],
                    animal_type=AnimalType(data["animal_type"]),
                    package_type=PackageType(data["package_type"]),
                    price=int(data["price"]),
                    max_slots=int(max_slots) if max_slots is not None else None,
                    available_periods=[
                        AvailablePeriod(
                            period_id=p["period_id"],
                            period_name=p["period_name"],
                            price=int(p["price"]),
                        )
                        for p in data.get("available_periods", [])
                    ],
                )

            except httpx.TimeoutException as e:
                raise CatalogAPIError(f"Catalog API timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise CatalogAPIError(f"Catalog API error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                raise CatalogAPIError(f"Catalog API unreachable: {e}") from e
            except (KeyError, ValueError, TypeError, AttributeError) as e:
                raise CatalogAPIError(f"Invalid package data from catalog: {e}") from e

    async def get_fee_settings(self) -> FeeSettings:
        """
        Fetch the amil fees used as base fees.

        Raises:
            CatalogAPIError: On timeout, HTTP errors, or invalid response
        """
        async with self._client() as client:
            try:
                response = await client.get("/settings/public")
                response.raise_for_status()
                data = response.json()
                data = data.get("data", data)

                return FeeSettings(
                    amil_qurban_sapi_fee=int(data.get("amil_qurban_sapi_fee") or 0),
                    amil_qurban_perekor_fee=int(data.get("amil_qurban_perekor_fee") or 0),
                )

            except httpx.TimeoutException as e:
                raise CatalogAPIError(f"Settings API timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise CatalogAPIError(f"Settings API error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                raise CatalogAPIError(f"Settings API unreachable: {e}") from e
            except (ValueError, TypeError, AttributeError) as e:
                raise CatalogAPIError(f"Invalid settings data: {e}") from e
