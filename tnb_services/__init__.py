"""
tnb_services -- orchestration over the fiscal engines.

Services wire injected collaborators (tariff and share sources, clock,
policy) to the pure engines and bind the logging context of each call.
"""

from tnb_services.fiscal_notice_service import FiscalNoticeService, NoticeBatch

__all__ = [
    "FiscalNoticeService",
    "NoticeBatch",
]
