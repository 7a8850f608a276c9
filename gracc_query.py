"""
GRACC job / CPU-hour query.

Sends one date-histogram aggregation to the GRACC accounting index, folds the
buckets into job and CPU-hour totals plus a per-bucket time series, and writes
the raw response and the summary to JSON files.
"""

import json
import sys
from datetime import datetime

import pandas as pd
from elasticsearch import ApiError, Elasticsearch, TransportError

from date_utils import to_iso_string

ENDPOINT = "https://gracc.opensciencegrid.org:443/q"
SUMMARY_INDEX = "gracc.osg.raw"

EXCLUDED_SITES = ["NONE", "Generic", "Obsolete"]
EXCLUDED_VOS = ["Unknown", "unknown", "other"]

RESPONSE_OUTPUT_FILE = "responseOut.json"
DATA_OUTPUT_FILE = "dataOut.json"

REQUEST_TIMEOUT = 300

BUCKET_COLUMNS = ["timestamp", "nJobs", "cpuHours", "docCount"]


def format_offset(offset: int | None) -> str | None:
    """Histogram offset in seconds, shifted back: 3600 -> "-3600s"."""
    if offset is None:
        return None
    return f"-{offset}s"


def build_query(start: str | datetime, end: str | datetime, interval: str, offset: int | None = None) -> dict:
    """
    Build the search body for batch jobs ending in [start, end).

    Args:
        start: Range start, ISO string or datetime
        end: Range end (exclusive), ISO string or datetime
        interval: Histogram fixed_interval, e.g. "1d" or "6h"
        offset: Optional bucket offset in seconds

    Returns:
        Search body with size, query and aggs keys
    """
    start_str = to_iso_string(start)
    end_str = to_iso_string(end)

    date_histogram = {
        "field": "EndTime",
        "fixed_interval": interval,
        "extended_bounds": {
            "min": start_str,
            "max": end_str,
        },
    }
    offset_str = format_offset(offset)
    if offset_str is not None:
        date_histogram["offset"] = offset_str

    return {
        "size": 0,
        "query": {
            "bool": {
                "filter": [
                    {"range": {
                        "EndTime": {
                            "gte": start_str,
                            "lt": end_str,
                        },
                    }},
                    {"term": {"ResourceType": "Batch"}},
                    {"bool": {
                        "must_not": [
                            {"terms": {"SiteName": EXCLUDED_SITES}},
                            {"terms": {"VOName": EXCLUDED_VOS}},
                        ],
                    }},
                ],
            },
        },
        "aggs": {
            "EndTime": {
                "date_histogram": date_histogram,
                "aggs": {
                    "CoreHours": {"sum": {"field": "CoreHours"}},
                    "Njobs": {"sum": {"field": "Njobs"}},
                },
            },
        },
    }


def get_client(endpoint: str = ENDPOINT, request_timeout: int = REQUEST_TIMEOUT) -> Elasticsearch:
    return Elasticsearch(endpoint, request_timeout=request_timeout)


def run_query(client: Elasticsearch, query: dict, index: str = SUMMARY_INDEX) -> dict | None:
    """
    Run the search and return the response body.

    Returns None when GRACC rejects the query or cannot be reached; the error
    body is echoed to stderr.
    """
    try:
        response = client.search(index=index, **query)
    except ApiError as e:
        print("GRACC query failed", file=sys.stderr)
        if e.body:
            print(e.body if isinstance(e.body, str) else json.dumps(e.body, indent=2), file=sys.stderr)
        return None
    except TransportError as e:
        print("GRACC query failed", file=sys.stderr)
        print(str(e), file=sys.stderr)
        return None

    body = getattr(response, "body", response)
    if not isinstance(body, dict):
        raise TypeError(f"Expected a JSON object from GRACC, got {type(body).__name__}")
    return body


def buckets_to_df(buckets: list[dict]) -> pd.DataFrame:
    """One row per histogram bucket, in response order."""
    rows = [
        {
            "timestamp": bucket["key_as_string"],
            "nJobs": bucket["Njobs"]["value"],
            "cpuHours": bucket["CoreHours"]["value"],
            "docCount": bucket["doc_count"],
        }
        for bucket in buckets
    ]
    return pd.DataFrame(rows, columns=BUCKET_COLUMNS)


def summarize(body: dict, start: str | datetime, end: str | datetime) -> dict:
    """
    Fold the histogram buckets into totals and a time series.

    A bucket whose CoreHours sum is missing counts its document count towards
    sumCpuHours. Data points carry the raw values.
    """
    buckets = body["aggregations"]["EndTime"]["buckets"]
    df = buckets_to_df(buckets)

    cpu_hours = df["cpuHours"].astype(float).fillna(df["docCount"].astype(float))

    return {
        "took": body["took"],
        "startTime": to_iso_string(start),
        "endTime": to_iso_string(end),
        "sumJobs": float(df["nJobs"].astype(float).sum()),
        "sumCpuHours": float(cpu_hours.sum()),
        "dataPoints": [
            {
                "timestamp": bucket["key_as_string"],
                "nJobs": bucket["Njobs"]["value"],
                "cpuHours": bucket["CoreHours"]["value"],
            }
            for bucket in buckets
        ],
    }


def write_json(path: str | None, data: dict, description: str = "output") -> bool:
    """Write data as JSON; a failed write is reported, not raised."""
    if path is None:
        return False
    try:
        with open(path, "w") as f:
            json.dump(data, f)
    except OSError as e:
        print(f"Warning: failed to write to {description} file {path}: {e}", file=sys.stderr)
        return False
    return True


def gracc_query(
    start: str | datetime,
    end: str | datetime,
    interval: str,
    offset: int | None = None,
    *,
    client: Elasticsearch | None = None,
    index: str = SUMMARY_INDEX,
    response_output: str | None = RESPONSE_OUTPUT_FILE,
    data_output: str | None = DATA_OUTPUT_FILE,
) -> dict | None:
    """
    Query GRACC for batch jobs in [start, end) and summarize them.

    Args:
        start: Range start, ISO string or datetime
        end: Range end (exclusive), ISO string or datetime
        interval: Histogram bucket width, passed through as fixed_interval
        offset: Optional bucket offset in seconds
        client: Elasticsearch client; one for ENDPOINT is created if omitted
        index: Index to search
        response_output: Where to write the raw response, None to skip
        data_output: Where to write the summary, None to skip

    Returns:
        Summary dictionary, or None if the query failed
    """
    if client is None:
        client = get_client()

    query = build_query(start, end, interval, offset)
    body = run_query(client, query, index=index)
    if body is None:
        return None

    write_json(response_output, body, "response body output")

    result = summarize(body, start, end)

    write_json(data_output, result, "data output")

    return result
