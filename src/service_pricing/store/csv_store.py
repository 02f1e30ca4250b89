"""
CSV Price Store - pandas-backed price table.

Prices live in a DataFrame that is loaded from, and rewritten to, a CSV file.
Without a path the store is memory-only (handy for tests and demos).
"""
import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import pandas as pd

from ..engine.models import EntityType, PriceFilters, PriceRecord, today_iso
from ..errors import PriceStoreError

logger = logging.getLogger(__name__)


ORDERABLE_COLUMNS = ('amount', 'start_date', 'created_at')


def _optional(value: Any) -> Any:
    """Blank cells and NaN come back as None."""
    if isinstance(value, str):
        return value or None
    if value is None or pd.isna(value):
        return None
    return value


class CsvPriceStore:
    """
    Price table backed by a CSV file.

    All ids are kept as strings. Dates are ISO strings and compared as such.
    Writes rebuild the frame, persist it, and only then swap it in, so a
    failed write leaves the in-memory table untouched.
    """

    COLUMNS = [
        'id', 'entity_type', 'entity_id', 'product_id', 'amount', 'currency',
        'level', 'start_date', 'end_date', 'notes', 'created_at', 'updated_at',
    ]

    # Shared by every store instance writing to disk
    _file_lock = threading.RLock()

    def __init__(self, csv_path: Optional[Path] = None):
        self.csv_path = Path(csv_path) if csv_path else None
        self.df = self._load()

    # =========================================================================
    # LOADING / SAVING
    # =========================================================================

    def _empty_frame(self) -> pd.DataFrame:
        df = pd.DataFrame(columns=self.COLUMNS)
        df['amount'] = df['amount'].astype(float)
        return df

    def _load(self) -> pd.DataFrame:
        """Load the price table, creating an empty file if needed."""
        if self.csv_path is None:
            return self._empty_frame()

        try:
            with self._file_lock:
                if not self.csv_path.exists():
                    self.csv_path.parent.mkdir(parents=True, exist_ok=True)
                    self._empty_frame().to_csv(self.csv_path, index=False)
                    logger.info("Created empty price table at %s", self.csv_path)

                df = pd.read_csv(self.csv_path, dtype=str, keep_default_na=False)
        except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            raise PriceStoreError(f"Cannot read price table {self.csv_path}: {e}") from e

        missing = [col for col in ('id', 'entity_type', 'entity_id', 'product_id', 'amount') if col not in df.columns]
        if missing:
            raise PriceStoreError(f"Price table {self.csv_path} is missing columns: {', '.join(missing)}")

        for col in self.COLUMNS:
            if col not in df.columns:
                df[col] = ''

        for col in self.COLUMNS:
            df[col] = df[col].map(lambda v: v.strip() if isinstance(v, str) else v)

        try:
            df['amount'] = pd.to_numeric(df['amount'])
        except ValueError as e:
            raise PriceStoreError(f"Non-numeric amount in {self.csv_path}: {e}") from e

        logger.debug("Loaded %d prices from %s", len(df), self.csv_path)
        return df[self.COLUMNS].reset_index(drop=True)

    def _commit(self, df: pd.DataFrame):
        """Persist a new version of the table and make it current."""
        df = df.reset_index(drop=True)
        if self.csv_path is not None:
            try:
                with self._file_lock:
                    df.to_csv(self.csv_path, index=False)
            except OSError as e:
                raise PriceStoreError(f"Cannot write price table {self.csv_path}: {e}") from e
        self.df = df

    def reload(self):
        """Reload the table from disk."""
        self.df = self._load()

    # =========================================================================
    # CONVERSION
    # =========================================================================

    def _to_record(self, row: pd.Series) -> PriceRecord:
        try:
            return PriceRecord(
                id=str(row['id']),
                entity_type=row['entity_type'],
                entity_id=str(row['entity_id']),
                product_id=str(row['product_id']),
                amount=float(row['amount']),
                currency=_optional(row['currency']) or 'EUR',
                level=_optional(row['level']),
                start_date=_optional(row['start_date']),
                end_date=_optional(row['end_date']),
                notes=_optional(row['notes']),
                created_at=_optional(row['created_at']),
                updated_at=_optional(row['updated_at']),
            )
        except ValueError as e:
            raise PriceStoreError(f"Malformed price row {row.get('id')}: {e}") from e

    def _to_row(self, record: PriceRecord) -> dict:
        row = record.to_dict()
        return {col: ('' if row.get(col) is None else row[col]) for col in self.COLUMNS}

    def _active_mask(self, df: pd.DataFrame, on_date: str) -> pd.Series:
        starts_ok = (df['start_date'] == '') | (df['start_date'] <= on_date)
        ends_ok = (df['end_date'] == '') | (df['end_date'] >= on_date)
        return starts_ok & ends_ok

    # =========================================================================
    # PRICE STORE
    # =========================================================================

    def find_price(
        self,
        entity_type: EntityType,
        entity_id: str,
        product_id: str,
        on_date: Optional[str] = None,
    ) -> Optional[PriceRecord]:
        """Find the active price for an entity/product pair, latest start first."""
        if not entity_id or not product_id:
            raise PriceStoreError("Price lookup needs both an entity id and a product id")
        try:
            entity_type = EntityType(entity_type)
        except ValueError as e:
            raise PriceStoreError(f"Unknown entity type {entity_type!r}") from e

        df = self.df
        on_date = on_date or today_iso()
        mask = (
            (df['entity_type'] == entity_type.value) &
            (df['entity_id'] == str(entity_id)) &
            (df['product_id'] == str(product_id)) &
            self._active_mask(df, on_date)
        )
        match = df[mask]
        if match.empty:
            return None

        match = match.sort_values('start_date', ascending=False)
        return self._to_record(match.iloc[0])

    # =========================================================================
    # PRICE REPOSITORY
    # =========================================================================

    def get(self, price_id: str) -> Optional[PriceRecord]:
        match = self.df[self.df['id'] == str(price_id)]
        if match.empty:
            return None
        return self._to_record(match.iloc[0])

    def all_prices(self) -> list[PriceRecord]:
        return [self._to_record(row) for _, row in self.df.iterrows()]

    def count(self) -> int:
        return len(self.df)

    def list_prices(self, filters: Optional[PriceFilters] = None) -> tuple[list[PriceRecord], int]:
        """
        List prices matching the filters.

        Returns (page of records, total matches before pagination).
        """
        filters = filters or PriceFilters()
        df = self.df

        if filters.entity_type:
            df = df[df['entity_type'] == EntityType(filters.entity_type).value]
        if filters.entity_id:
            df = df[df['entity_id'] == filters.entity_id]
        if filters.product_id:
            df = df[df['product_id'] == filters.product_id]
        if filters.active is not None:
            active = self._active_mask(df, filters.on_date or today_iso())
            df = df[active] if filters.active else df[~active]

        total = len(df)

        order_by = filters.order_by if filters.order_by in ORDERABLE_COLUMNS else 'created_at'
        df = df.sort_values(order_by, ascending=filters.order_direction == 'asc', kind='stable')

        if filters.page and filters.limit:
            offset = (filters.page - 1) * filters.limit
            df = df.iloc[offset:offset + filters.limit]

        return [self._to_record(row) for _, row in df.iterrows()], total

    def add(self, record: PriceRecord) -> PriceRecord:
        """Append a record and persist."""
        if self.get(record.id) is not None:
            raise PriceStoreError(f"Price '{record.id}' already exists")

        now = datetime.now().isoformat(timespec='seconds')
        record.created_at = record.created_at or now
        record.updated_at = now

        row = pd.DataFrame([self._to_row(record)], columns=self.COLUMNS)
        df = row if self.df.empty else pd.concat([self.df, row], ignore_index=True)
        df['amount'] = df['amount'].astype(float)
        self._commit(df)
        return record

    def update(self, price_id: str, changes: dict[str, Any]) -> Optional[PriceRecord]:
        """Apply column changes to a record. Returns None if the id is unknown."""
        idx = self.df.index[self.df['id'] == str(price_id)]
        if len(idx) == 0:
            return None

        df = self.df.copy()
        for key, value in changes.items():
            if key not in self.COLUMNS or key == 'id':
                continue
            if key == 'amount':
                value = float(value)
            df.loc[idx, key] = '' if value is None else value
        df.loc[idx, 'updated_at'] = datetime.now().isoformat(timespec='seconds')

        self._commit(df)
        return self.get(price_id)

    def delete(self, price_id: str) -> bool:
        keep = self.df['id'] != str(price_id)
        if keep.all():
            return False
        self._commit(self.df[keep])
        return True

    def exists_active(
        self,
        entity_type: EntityType,
        entity_id: str,
        product_id: str,
        exclude_id: Optional[str] = None,
        on_date: Optional[str] = None,
    ) -> bool:
        """Check whether another active price covers the same scope."""
        df = self.df
        mask = (
            (df['entity_type'] == EntityType(entity_type).value) &
            (df['entity_id'] == str(entity_id)) &
            (df['product_id'] == str(product_id)) &
            self._active_mask(df, on_date or today_iso())
        )
        if exclude_id:
            mask &= df['id'] != str(exclude_id)
        return bool(mask.any())
