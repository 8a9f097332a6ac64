"""
payout_source.py
-----------------
Payout record sources. Each source exposes one call:

    fetch_all_payouts() -> list[PayoutRecord]     (raises FetchError)

Sources return the whole batch in one go. No pagination and no server-side
filtering; everything after the fetch happens in the engine.

    - CsvPayoutSource:      local CSV export (default, used by tests and demos)
    - SupabasePayoutSource: Supabase REST (PostgREST) table over HTTPS

Rows use the snake_case column names of the payouts table. Row parsing
applies the record defaults: missing amounts → 0.0, missing categorical
fields → "", missing margin_percent → None. pandas NaN counts as missing.
In amount and margin columns the NA tokens ("NaN", "null", ...) and
non-finite numbers count as missing too.
"""

import logging
import math
import os
from typing import Any, Dict, List, Optional

import httpx
import pandas as pd

from core.models import PayoutRecord
from config.config_loader import get_data_source_config

logger = logging.getLogger(__name__)

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

AMOUNT_COLUMNS = ["wallet_debit_usd", "usd_equivalent", "extra_fees_usd", "platform_charges_usd"]
CATEGORICAL_COLUMNS = ["customer_name", "country", "platform", "customer_type", "final_status"]
NUMERIC_COLUMNS = AMOUNT_COLUMNS + ["margin_percent"]

# Cell values that mean "no value" in amount and margin columns
NA_TOKENS = ["", "NaN", "nan", "NA", "N/A", "null", "NULL", "None"]


class FetchError(Exception):
    """The payout store could not be reached or returned a failure."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


# =============================================================================
# ROW PARSING
# =============================================================================

def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    return bool(pd.isna(value))


def _to_number(value: Any) -> float | None:
    if _is_missing(value) or (isinstance(value, str) and value.strip() in NA_TOKENS):
        return None
    number = float(value)
    return number if math.isfinite(number) else None


def _to_amount(value: Any) -> float:
    number = _to_number(value)
    return 0.0 if number is None else number


def _to_text(value: Any) -> str:
    return "" if _is_missing(value) else str(value)


def record_from_row(row: Dict[str, Any]) -> PayoutRecord:
    """
    Build a PayoutRecord from one row of the payouts table.

    Raises:
        ValueError: If an amount is present but not numeric.
    """
    raw_date = row.get("date")
    parsed_date = None if _is_missing(raw_date) else pd.to_datetime(raw_date, errors="coerce")

    return PayoutRecord(
        id=_to_text(row.get("id")),
        date=None if parsed_date is None or pd.isna(parsed_date) else parsed_date.date(),
        **{col: _to_text(row.get(col)) for col in CATEGORICAL_COLUMNS},
        **{col: _to_amount(row.get(col)) for col in AMOUNT_COLUMNS},
        margin_percent=_to_number(row.get("margin_percent")),
    )


def _records_from_rows(rows: List[Dict[str, Any]], origin: str) -> List[PayoutRecord]:
    records = []
    for i, row in enumerate(rows):
        try:
            records.append(record_from_row(row))
        except (TypeError, ValueError) as e:
            raise FetchError(f"Malformed payout row {i} from {origin}: {e}") from e
    return records


# =============================================================================
# CSV SOURCE
# =============================================================================

class CsvPayoutSource:
    """
    Reads a CSV export of the payouts table.

    Usage:
        source = CsvPayoutSource("payouts_sample_data.csv")
        records = source.fetch_all_payouts()
    """

    def __init__(self, path: str):
        self.path = path

    def fetch_all_payouts(self) -> List[PayoutRecord]:
        if not os.path.exists(self.path):
            raise FetchError(f"Payout file not found: {self.path}")

        try:
            df = pd.read_csv(
                self.path,
                dtype={col: str for col in ["id"] + CATEGORICAL_COLUMNS},
                keep_default_na=False,
                na_values={col: NA_TOKENS for col in NUMERIC_COLUMNS},
            )
        except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
            raise FetchError(f"Could not read payout file {self.path}: {e}") from e

        records = _records_from_rows(df.to_dict("records"), self.path)
        logger.info(f"Fetched {len(records):,} payouts from {self.path}.")
        return records

    def __repr__(self) -> str:
        return f"CsvPayoutSource(path={self.path!r})"


# =============================================================================
# SUPABASE SOURCE
# =============================================================================

class SupabasePayoutSource:
    """
    Reads the payouts table through Supabase's PostgREST endpoint.

    Usage:
        source = SupabasePayoutSource(url, api_key)
        records = source.fetch_all_payouts()
    """

    def __init__(
        self,
        url: str | None,
        api_key: str | None,
        table: str = "payouts",
        order: str | None = "date.desc",
        timeout: float = 30.0,
        client: httpx.Client | None = None,
    ):
        self.url = (url or "").rstrip("/")
        self.api_key = api_key
        self.table = table
        self.order = order
        self.timeout = timeout
        self._client = client

    def _headers(self) -> Dict[str, str]:
        return {
            "apikey": self.api_key or "",
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
        }

    def _params(self) -> Dict[str, str]:
        params = {"select": "*"}
        if self.order:
            params["order"] = self.order
        return params

    def fetch_all_payouts(self) -> List[PayoutRecord]:
        if not self.url or not self.api_key:
            raise FetchError("Supabase URL or API key is not configured.")

        endpoint = f"{self.url}/rest/v1/{self.table}"
        client = self._client or httpx.Client(timeout=self.timeout)
        try:
            response = client.get(endpoint, headers=self._headers(), params=self._params())
        except httpx.HTTPError as e:
            logger.error(f"Supabase request failed: {e}")
            raise FetchError(f"Could not reach payout store: {e}") from e
        finally:
            if self._client is None:
                client.close()

        if response.status_code >= 400:
            logger.error(f"Supabase API error: {response.status_code} - {response.text}")
            raise FetchError(
                _error_message(response) or f"Payout store returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            rows = response.json()
        except ValueError as e:
            raise FetchError(f"Payout store returned invalid JSON: {e}") from e

        if not isinstance(rows, list):
            raise FetchError(f"Expected a list of payouts, got {type(rows).__name__}.")

        records = _records_from_rows(rows, endpoint)
        logger.info(f"Fetched {len(records):,} payouts from Supabase table '{self.table}'.")
        return records

    def __repr__(self) -> str:
        return f"SupabasePayoutSource(url={self.url!r}, table={self.table!r})"


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text
    if isinstance(data, dict):
        return data.get("message") or data.get("error") or response.text
    return response.text


# =============================================================================
# FACTORY
# =============================================================================

def get_payout_source(kind: str | None = None, csv_path: str | None = None):
    """
    Builds the configured payout source.

    Args:
        kind: "csv" or "supabase". Defaults to data_source.type in config.
        csv_path: Override for the CSV path. Relative paths resolve from
            the project root.

    Raises:
        ValueError: If kind is not a known source type.
    """
    config = get_data_source_config()
    kind = kind or config["type"]

    if kind == "csv":
        path = csv_path or config["csv"]["path"]
        if not os.path.isabs(path):
            path = os.path.join(PROJECT_ROOT, path)
        return CsvPayoutSource(path)

    if kind == "supabase":
        cfg = config["supabase"]
        return SupabasePayoutSource(
            url=os.environ.get(cfg["url_env"]),
            api_key=os.environ.get(cfg["key_env"]),
            table=cfg["table"],
            order=cfg.get("order"),
            timeout=float(cfg["timeout_seconds"]),
        )

    raise ValueError(f"Unknown data source type '{kind}'. Available: ['csv', 'supabase']")
