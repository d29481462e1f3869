"""Market-data ingestion: the daily Polygon job and its schedule."""

from .market_data import IngestReport, MarketDataIngestor

__all__ = ["IngestReport", "MarketDataIngestor"]
