from app.business.quotes.api import router
from app.business.quotes.models import Quote, QuoteCounter, QuoteItem
from app.business.quotes.service import QuoteService, quote_service

__all__ = [
    "router",
    "Quote",
    "QuoteCounter",
    "QuoteItem",
    "QuoteService",
    "quote_service",
]
