from ingestion.transformers.normalizer import RecordNormalizer, RECORD_SCHEMAS

__all__ = ["RecordNormalizer", "RECORD_SCHEMAS"]
