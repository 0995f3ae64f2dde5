from __future__ import annotations

import pytest

from transit_fusion.app.services.schedule_loader import build_schedule_store
from transit_fusion.domain.models.gtfs import SchedulePayloads, ScheduleStore

STOPS_TXT = """stop_id,stop_code,stop_name,stop_lat,stop_lon
S1,70001,Termini,41.9009,12.5016
S2,,Piazza Venezia,41.8960,12.4823
S3,70003,Colosseo,41.8902,12.4922
BAD,,No coordinates,,
S4,70004,Broken,abc,12.5000
"""

ROUTES_TXT = """route_id,agency_id,route_short_name,route_long_name,route_type
R42,atac,42,Termini - Venezia,3
R2,atac,2,Flaminio - Colosseo,3
R12,atac,12,Venezia - Ostiense,3
R85A,atac,85,Arco di Travertino - Termini,3
R85B,atac,85,Termini - Arco di Travertino,3
RX,atac,,Unnamed shuttle,3
,atac,99,Missing id,3
"""

TRIPS_TXT = """route_id,service_id,trip_id,trip_headsign,shape_id
R42,FER,T1,Termini,SH1
R42,FER,T2,Venezia,SH1
R2,FER,T3,Flaminio,SH2
R12,FER,T4,Ostiense,
R85A,FER,T5,Arco di Travertino,SH3
R85B,FER,T6,Termini,SH3
,FER,,Orphan,
"""

SHAPES_TXT = """shape_id,shape_pt_lat,shape_pt_lon,shape_pt_sequence
SH1,41.8960,12.4823,2
SH1,41.9009,12.5016,1
SH1,41.8980,12.4900,3
SH2,41.8902,12.4922,1
SH2,not-a-number,12.4900,2
SH2,41.8960,12.4823,3
"""

ROUTE_STOPS_JSON = """{
  "42": ["S1", "S2"],
  "2": ["S2", "S3"],
  "12": ["S2"],
  "85": ["S1"]
}"""


@pytest.fixture
def schedule_payloads() -> SchedulePayloads:
    return SchedulePayloads(
        stops=STOPS_TXT,
        routes=ROUTES_TXT,
        trips=TRIPS_TXT,
        shapes=SHAPES_TXT,
        route_stops=ROUTE_STOPS_JSON,
    )


@pytest.fixture
def store(schedule_payloads: SchedulePayloads) -> ScheduleStore:
    return build_schedule_store(schedule_payloads)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"
