"""NCR geography — the dominion and campus territories the feed launched with.

Territory ids are shared with the feed service and must not change.
"""

from tribunal.core.domain_types import ScopeId

NCR_DOMINION: tuple[ScopeId, str] = (ScopeId("ncr"), "Delhi NCR")

NCR_TERRITORIES: dict[str, ScopeId] = {
    "DU North Campus": ScopeId("770e8400-e29b-41d4-a716-446655440001"),
    "DU South Campus": ScopeId("770e8400-e29b-41d4-a716-446655440002"),
    "JNU": ScopeId("770e8400-e29b-41d4-a716-446655440003"),
    "Jamia Millia Islamia": ScopeId("770e8400-e29b-41d4-a716-446655440004"),
    "Amity University": ScopeId("770e8400-e29b-41d4-a716-446655440005"),
    "JIIT Noida": ScopeId("770e8400-e29b-41d4-a716-446655440006"),
    "GBU": ScopeId("770e8400-e29b-41d4-a716-446655440007"),
    "Sharda University": ScopeId("770e8400-e29b-41d4-a716-446655440008"),
    "GD Goenka": ScopeId("770e8400-e29b-41d4-a716-446655440009"),
    "Sushant University": ScopeId("770e8400-e29b-41d4-a716-446655440010"),
    "MDU Rohtak": ScopeId("770e8400-e29b-41d4-a716-446655440011"),
    "Bennett University": ScopeId("770e8400-e29b-41d4-a716-446655440012"),
    "GL Bajaj": ScopeId("770e8400-e29b-41d4-a716-446655440013"),
    "NIET": ScopeId("770e8400-e29b-41d4-a716-446655440014"),
    "Galgotias University": ScopeId("770e8400-e29b-41d4-a716-446655440015"),
}
