# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description: Montgomery PD open data adapter (Socrata catalog discovery + latest rows).

from __future__ import annotations

import re
from collections import Counter
from typing import Any, Dict, List, Optional, Sequence

from domains.source_domain import Incident, IncidentDataset, IncidentsPayload, RiskLevel
from infrastructures.sources.errors import SourceParseError
from infrastructures.sources.http_client import SourceHttpClient

SOCRATA_CATALOG_URL = "https://api.us.socrata.com/api/catalog/v1"
SOCRATA_DOMAIN = "data.montgomeryal.gov"
ROW_LIMIT = 25

_HIGH = re.compile(r"homicide|shooting|armed|assault|robbery|violent|weapon")
_MODERATE = re.compile(r"burglary|theft|break|vandalism|battery|drugs")

TYPE_FIELDS = ("offense", "offense_description", "incident_type", "ucr_desc", "description", "title")
DATE_FIELDS = ("incident_date", "occurred_on_date", "report_date", "date", "created_at", ":created_at")
LOCATION_FIELDS = ("block_address", "address", "location", "street", "intersection", "beat")
ID_FIELDS = ("incident_number", "case_number", "id")
DETAIL_FIELDS = ("description", "narrative", "notes")

# dataset ranking keywords
_RANK_WEIGHTS = (("police", 3), ("incident", 3), ("crime", 2), ("call", 1))


def pick_field(row: Dict[str, Any], names: Sequence[str]) -> Optional[Any]:
    for name in names:
        v = row.get(name)
        if v is not None and v != "":
            return v
    return None


def infer_severity(type_text: Any) -> RiskLevel:
    t = str(type_text or "").lower()
    if _HIGH.search(t):
        return RiskLevel.high
    if _MODERATE.search(t):
        return RiskLevel.moderate
    return RiskLevel.low


def normalize_incident(row: Dict[str, Any], index: int) -> Incident:
    itype = pick_field(row, TYPE_FIELDS) or "Incident"
    location = pick_field(row, LOCATION_FIELDS)
    if isinstance(location, dict):
        # socrata point columns come back as objects
        location = location.get("human_address") or None
    details = pick_field(row, DETAIL_FIELDS)
    date = pick_field(row, DATE_FIELDS)
    return Incident(
        id=str(pick_field(row, ID_FIELDS) or f"inc-{index + 1}"),
        type=str(itype),
        severity=infer_severity(itype),
        location=str(location or "Montgomery area"),
        time=str(date) if date is not None else None,
        details=str(details) if details is not None else None,
    )


def rank_datasets(results: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Best police/incident dataset from a catalog search, or None."""

    best = None
    best_score = -1
    for r in results:
        resource = r.get("resource") or {}
        if not resource.get("id"):
            continue
        text = f"{resource.get('name') or ''} {resource.get('description') or ''}".lower()
        score = sum(w for kw, w in _RANK_WEIGHTS if kw in text)
        if score > best_score:
            best, best_score = r, score
    return best


def summarize(incidents: List[Incident]) -> Dict[str, int]:
    return dict(Counter(i.severity.value for i in incidents))


async def fetch_incidents(http: SourceHttpClient) -> IncidentsPayload:
    catalog = await http.get_json(
        SOCRATA_CATALOG_URL,
        source="incidents",
        params={"search_context": SOCRATA_DOMAIN, "q": "police incident crime", "limit": 20},
    )
    if not isinstance(catalog, dict):
        raise SourceParseError("catalog response is not an object", source="incidents")

    dataset = rank_datasets(catalog.get("results") or [])
    if dataset is None:
        return IncidentsPayload(
            source="Montgomery open data (Socrata catalog)",
            note="No incident dataset discovered at runtime.",
        )

    resource = dataset["resource"]
    rows = await http.get_json(
        f"https://{SOCRATA_DOMAIN}/resource/{resource['id']}.json",
        source="incidents",
        params={"$limit": ROW_LIMIT, "$order": ":updated_at DESC"},
    )
    if not isinstance(rows, list):
        raise SourceParseError("dataset rows are not a list", source="incidents")

    incidents = [normalize_incident(row, i) for i, row in enumerate(rows) if isinstance(row, dict)]
    return IncidentsPayload(
        dataset=IncidentDataset(
            id=str(resource["id"]),
            name=resource.get("name"),
            description=resource.get("description"),
        ),
        incidents=incidents,
        total=len(incidents),
        summary=summarize(incidents),
    )
