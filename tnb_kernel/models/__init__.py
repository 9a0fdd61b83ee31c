"""SQLAlchemy models of the persistence adapter."""

from tnb_kernel.models.ownership import OwnershipShareModel
from tnb_kernel.models.tariff import TariffModel

__all__ = [
    "OwnershipShareModel",
    "TariffModel",
]
