"""Read-only selectors serving the fiscal core's collaborator shapes."""

from tnb_kernel.selectors.base import BaseSelector
from tnb_kernel.selectors.ownership_selector import OwnershipSelector
from tnb_kernel.selectors.tariff_selector import TariffSelector

__all__ = [
    "BaseSelector",
    "OwnershipSelector",
    "TariffSelector",
]
