"""
Static points-conversion configuration, read from settings.POINTS_CONVERSION.
"""
from dataclasses import dataclass, field
from typing import Any, Dict

from django.conf import settings


@dataclass(frozen=True)
class ConversionConfig:
    company_wallet: str
    cvc_contract_address: str
    liquidity_contract_address: str
    network: str
    default_rate: Dict[str, Any] = field(default_factory=dict)

    def public_fields(self) -> Dict[str, str]:
        """Values merged into the user-facing rate response."""
        return {
            "companyWallet": self.company_wallet,
            "cvcContractAddress": self.cvc_contract_address,
            "liquidityContractAddress": self.liquidity_contract_address,
            "network": self.network,
        }


def get_conversion_config() -> ConversionConfig:
    raw = getattr(settings, "POINTS_CONVERSION", {}) or {}
    return ConversionConfig(
        company_wallet=raw.get("COMPANY_WALLET", ""),
        cvc_contract_address=raw.get("CVC_CONTRACT_ADDRESS", ""),
        liquidity_contract_address=raw.get("LIQUIDITY_CONTRACT_ADDRESS", ""),
        network=raw.get("NETWORK", ""),
        default_rate=dict(raw.get("DEFAULT_RATE", {})),
    )
