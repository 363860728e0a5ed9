"""
Trade Validation Service Implementation

Fuses market context, per-strike probabilities and liquidity into a single
ranked verdict.
PURE PYTHON after the fetch - All rules are deterministic and auditable.

CRITICAL: A CRITICAL failure REJECTS the trade. No override.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional, Union

from tradecheck.schemas.market import OptionType
from tradecheck.schemas.structure import MarketStructureSnapshot
from tradecheck.schemas.validation import (
    StrategyType,
    TradeStrikes,
    ValidationOptions,
    ValidationReport,
)
from tradecheck.services.base import TradeValidationError
from tradecheck.services.context.service import MarketContextService
from tradecheck.services.market_data.interface import MarketDataProvider
from tradecheck.services.probability.service import ProbabilityService
from tradecheck.services.structure.service import MarketStructureService
from tradecheck.services.validation.interface import TradeValidationRequest, TradeValidationServiceInterface
from tradecheck.services.validation.recommendation import generate_recommendation
from tradecheck.services.validation.rules import build_checks, reduce_overall_status, summarize_checks

logger = logging.getLogger(__name__)

LEG_OPTION_TYPES = {
    "short_call": OptionType.CALL,
    "short_put": OptionType.PUT,
    "long_call": OptionType.CALL,
    "long_put": OptionType.PUT,
}


class TradeValidationService(TradeValidationServiceInterface):
    """
    Pre-Trade Validation Engine.

    One concurrent fetch phase, then a synchronous check battery,
    severity reduction and recommendation.
    """

    def __init__(
        self,
        provider: MarketDataProvider,
        context_service: Optional[MarketContextService] = None,
        probability_service: Optional[ProbabilityService] = None,
        structure_service: Optional[MarketStructureService] = None,
    ):
        self.provider = provider
        self.context_service = context_service or MarketContextService(provider)
        self.probability_service = probability_service or ProbabilityService(provider)
        self.structure_service = structure_service or MarketStructureService(provider)

    @property
    def name(self) -> str:
        return "TradeValidationService"

    async def execute(self, input_data: TradeValidationRequest) -> ValidationReport:
        return await self.validate_trade(
            input_data.symbol,
            input_data.strategy_type,
            input_data.strikes,
            input_data.expiration,
            input_data.options,
        )

    async def validate_trade(
        self,
        symbol: str,
        strategy_type: Union[StrategyType, str],
        strikes: Union[TradeStrikes, dict],
        expiration: str,
        options: Optional[ValidationOptions] = None,
    ) -> ValidationReport:
        symbol = symbol.upper().strip()
        try:
            report = await self._validate(symbol, strategy_type, strikes, expiration, options or ValidationOptions())
        except Exception as e:
            logger.error(f"Trade validation failed for {symbol} {expiration}: {e}")
            raise TradeValidationError(self.name, f"Trade validation failed: {e}") from e

        logger.info(
            f"Validated {report.strategy} on {symbol} {expiration}: {report.overall_status.value} "
            f"({report.summary.passed}/{report.summary.total_checks} passed, "
            f"{report.summary.critical_failures} critical)"
        )
        return report

    async def health_check(self) -> bool:
        return await self.provider.health_check()

    async def _validate(
        self,
        symbol: str,
        strategy_type: Union[StrategyType, str],
        strikes: Union[TradeStrikes, dict],
        expiration: str,
        options: ValidationOptions,
    ) -> ValidationReport:
        if not isinstance(strikes, TradeStrikes):
            strikes = TradeStrikes.model_validate(strikes)
        strategy = strategy_type.value if isinstance(strategy_type, StrategyType) else str(strategy_type)

        legs = strikes.populated()
        results = await asyncio.gather(
            self.context_service.get_complete_market_picture(symbol, options.option_contract),
            self._structure(symbol, options.structure_expiration or expiration, options.include_market_structure),
            *(
                self.probability_service.calculate_probabilities(
                    symbol, strike, expiration, LEG_OPTION_TYPES[leg]
                )
                for leg, strike in legs.items()
            ),
        )
        market_data, structure = results[0], results[1]
        probabilities = dict(zip(legs, results[2:]))

        checks = build_checks(market_data, strikes, probabilities, expiration)
        overall_status = reduce_overall_status(checks)

        return ValidationReport(
            timestamp=datetime.now(timezone.utc),
            symbol=symbol,
            strategy=strategy,
            expiration=expiration,
            strikes=strikes,
            overall_status=overall_status,
            summary=summarize_checks(checks),
            checks=checks,
            probabilities=probabilities,
            market_data=market_data,
            market_structure=structure,
            recommendation=generate_recommendation(overall_status, checks, probabilities),
        )

    async def _structure(
        self,
        symbol: str,
        expiration: str,
        enabled: bool,
    ) -> Optional[MarketStructureSnapshot]:
        """Informational only; a failed chain fetch leaves the report without it."""
        if not enabled:
            return None
        try:
            return await self.structure_service.analyze(symbol, expiration)
        except Exception as e:
            logger.debug(f"Market structure unavailable for {symbol}: {e}")
            return None


# Singleton instance
_service_instance: Optional[TradeValidationService] = None


def get_validation_service(provider: Optional[MarketDataProvider] = None) -> TradeValidationService:
    """Get or create trade validation service instance."""
    global _service_instance
    if provider is not None:
        return TradeValidationService(provider)
    if _service_instance is None:
        from tradecheck.services.market_data.yahoo_provider import get_market_data_provider

        _service_instance = TradeValidationService(get_market_data_provider())
    return _service_instance
