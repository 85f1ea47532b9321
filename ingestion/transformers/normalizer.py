"""
Map upstream payloads onto normalized record schemas with Pydantic validation
"""

from typing import Dict, Any, List, Type, Union, Iterable
from pydantic import BaseModel, ValidationError

from core.exceptions import PersistenceError
from schemas.records import (
    GenerationRecord,
    StagingRecord,
    PriceRecord,
    ConsumptionRecord,
    WeatherRecord,
)
import logging

logger = logging.getLogger(__name__)


RECORD_SCHEMAS: Dict[str, Type[BaseModel]] = {
    "generation": GenerationRecord,
    "staging": StagingRecord,
    "price": PriceRecord,
    "consumption": ConsumptionRecord,
    "weather": WeatherRecord,
}


class RecordNormalizer:
    """
    Normalize records of one kind into their validated schema.

    Handles:
    - camelCase upstream fields (naturalGas -> natural_gas)
    - Missing/null quantities defaulting to 0
    - Consumption hour keyed as `time` or `hour`
    - Already-normalized models passed through (re-validated when the kind differs)
    """

    def __init__(self, kind: str):
        if kind not in RECORD_SCHEMAS:
            raise ValueError(f"Unknown record kind: {kind}")
        self.kind = kind
        self.schema = RECORD_SCHEMAS[kind]

    def normalize(self, record: Union[Dict[str, Any], BaseModel]) -> BaseModel:
        """Validate a single record; raises pydantic.ValidationError"""
        if type(record) is self.schema:
            return record
        if isinstance(record, BaseModel):
            record = record.model_dump()
        return self.schema.model_validate(record)

    def normalize_batch(self, records: Iterable[Union[Dict[str, Any], BaseModel]]) -> List[BaseModel]:
        """
        Validate a whole batch before anything is written.

        Raises:
            PersistenceError: on the first invalid record; nothing is normalized
        """
        normalized = []
        for index, record in enumerate(records):
            try:
                normalized.append(self.normalize(record))
            except ValidationError as e:
                logger.error(f"Invalid {self.kind} record at index {index}: {e.error_count()} error(s)")
                raise PersistenceError(
                    f"Invalid {self.kind} record in batch",
                    context={
                        "operation": "NORMALIZE",
                        "kind": self.kind,
                        "index": index,
                        "errors": e.errors(include_url=False),
                    },
                    original_exception=e,
                )
        return normalized
