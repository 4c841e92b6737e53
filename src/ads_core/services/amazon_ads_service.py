"""Amazon Ads campaign operations routed through the resilient invoker."""

import logging
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

from ..exceptions import InvalidOperationError
from ..schemas.provider import ProviderRequest, ProviderResponse

logger = logging.getLogger(__name__)

CAMPAIGNS_PATH = "/v2/sp/campaigns"
DEFAULT_REPORT_METRICS = "campaignName,campaignId,impressions,clicks,cost,attributedSales14d"


class AmazonAdsService:
    """
    Maps logical campaign operations onto Sponsored Products API requests.

    Every call goes through ``invoke`` (``InvokeProviderApiUseCase.execute``),
    so token freshness, the 401 refresh and backoff apply uniformly.
    """

    def __init__(self, invoke: Callable[[str, str, ProviderRequest], Awaitable[ProviderResponse]]):
        self._invoke = invoke
        self._builders: Dict[str, Callable[[Mapping[str, Any]], ProviderRequest]] = {
            "list_campaigns": self._list_campaigns,
            "get_campaign": self._get_campaign,
            "create_campaign": self._create_campaign,
            "update_campaign": self._update_campaign,
            "adjust_budget": self._adjust_budget,
            "get_campaign_report": self._get_campaign_report,
        }

    @property
    def operations(self) -> list[str]:
        return sorted(self._builders)

    def build_request(self, operation: str, params: Optional[Mapping[str, Any]] = None) -> ProviderRequest:
        builder = self._builders.get(operation)
        if builder is None:
            raise InvalidOperationError(f"Unsupported operation: {operation}")
        return builder(params or {})

    async def execute(
        self,
        credential_id: str,
        operation: str,
        params: Optional[Mapping[str, Any]] = None,
    ) -> ProviderResponse:
        request = self.build_request(operation, params)
        logger.debug(
            "Dispatching Amazon Ads operation | credential_id=%s | operation=%s | method=%s | path=%s",
            credential_id,
            operation,
            request.method,
            request.url,
        )
        return await self._invoke(credential_id, operation, request)

    async def list_campaigns(self, credential_id: str, **filters: Any) -> ProviderResponse:
        return await self.execute(credential_id, "list_campaigns", filters)

    async def get_campaign(self, credential_id: str, campaign_id: str) -> ProviderResponse:
        return await self.execute(credential_id, "get_campaign", {"campaign_id": campaign_id})

    async def create_campaign(self, credential_id: str, campaign_data: Mapping[str, Any]) -> ProviderResponse:
        return await self.execute(credential_id, "create_campaign", {"campaign_data": campaign_data})

    async def update_campaign(
        self, credential_id: str, campaign_id: str, update_data: Mapping[str, Any]
    ) -> ProviderResponse:
        return await self.execute(
            credential_id, "update_campaign", {"campaign_id": campaign_id, "update_data": update_data}
        )

    async def adjust_budget(self, credential_id: str, campaign_id: str, budget: float) -> ProviderResponse:
        return await self.execute(credential_id, "adjust_budget", {"campaign_id": campaign_id, "budget": budget})

    async def get_campaign_report(
        self, credential_id: str, report_date: str, metrics: Optional[str] = None
    ) -> ProviderResponse:
        params: Dict[str, Any] = {"report_date": report_date}
        if metrics:
            params["metrics"] = metrics
        return await self.execute(credential_id, "get_campaign_report", params)

    # Request builders

    def _list_campaigns(self, params: Mapping[str, Any]) -> ProviderRequest:
        query = {key: value for key, value in params.items() if value is not None}
        return ProviderRequest(method="GET", url=CAMPAIGNS_PATH, params=query or None)

    def _get_campaign(self, params: Mapping[str, Any]) -> ProviderRequest:
        campaign_id = _require(params, "campaign_id")
        return ProviderRequest(method="GET", url=f"{CAMPAIGNS_PATH}/{campaign_id}")

    def _create_campaign(self, params: Mapping[str, Any]) -> ProviderRequest:
        campaign_data = _require(params, "campaign_data")
        # The v2 API takes a list of campaigns.
        body = campaign_data if isinstance(campaign_data, list) else [campaign_data]
        return ProviderRequest(method="POST", url=CAMPAIGNS_PATH, body=body)

    def _update_campaign(self, params: Mapping[str, Any]) -> ProviderRequest:
        campaign_id = _require(params, "campaign_id")
        update_data = _require(params, "update_data")
        return ProviderRequest(method="PUT", url=f"{CAMPAIGNS_PATH}/{campaign_id}", body=dict(update_data))

    def _adjust_budget(self, params: Mapping[str, Any]) -> ProviderRequest:
        campaign_id = _require(params, "campaign_id")
        raw_budget = _require(params, "budget")
        try:
            budget = float(raw_budget)
        except (TypeError, ValueError) as exc:
            raise InvalidOperationError(f"Invalid budget: {raw_budget!r}") from exc
        if budget <= 0:
            raise InvalidOperationError("Budget must be greater than zero")
        return ProviderRequest(method="PUT", url=f"{CAMPAIGNS_PATH}/{campaign_id}", body={"budget": budget})

    def _get_campaign_report(self, params: Mapping[str, Any]) -> ProviderRequest:
        report_date = str(_require(params, "report_date")).replace("-", "")
        if len(report_date) != 8 or not report_date.isdigit():
            raise InvalidOperationError("report_date must be YYYYMMDD or YYYY-MM-DD")
        body = {
            "reportDate": report_date,
            "metrics": params.get("metrics") or DEFAULT_REPORT_METRICS,
        }
        return ProviderRequest(method="POST", url=f"{CAMPAIGNS_PATH}/report", body=body)


def _require(params: Mapping[str, Any], name: str) -> Any:
    value = params.get(name)
    if value is None or value == "":
        raise InvalidOperationError(f"Missing {name} parameter")
    return value
