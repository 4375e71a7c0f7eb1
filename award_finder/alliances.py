"""
Airline alliances and loyalty-program eligibility.

A program can price awards on airlines of its own alliance; pricing
fallback walks the programs of the operating airline's alliance.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Set

from .models import LoyaltyProgram


# ============================================================================
# Airline Alliances
# ============================================================================

class Alliance(str, Enum):
    """Major airline alliances."""
    STAR_ALLIANCE = "SA"
    ONEWORLD = "OW"
    SKYTEAM = "ST"


# Alliance member airlines (IATA codes)
STAR_ALLIANCE_MEMBERS: Set[str] = {
    "A3",  # Aegean Airlines
    "AC",  # Air Canada
    "CA",  # Air China
    "AI",  # Air India
    "NZ",  # Air New Zealand
    "NH",  # ANA (All Nippon Airways)
    "OZ",  # Asiana Airlines
    "OS",  # Austrian Airlines
    "AV",  # Avianca
    "SN",  # Brussels Airlines
    "CM",  # Copa Airlines
    "OU",  # Croatia Airlines
    "MS",  # EgyptAir
    "ET",  # Ethiopian Airlines
    "BR",  # EVA Air
    "LO",  # LOT Polish Airlines
    "LH",  # Lufthansa
    "CL",  # Lufthansa CityLine
    "ZH",  # Shenzhen Airlines
    "SQ",  # Singapore Airlines
    "SA",  # South African Airways
    "LX",  # SWISS
    "TP",  # TAP Air Portugal
    "TG",  # Thai Airways
    "TK",  # Turkish Airlines
    "UA",  # United Airlines
}

ONEWORLD_MEMBERS: Set[str] = {
    "AS",  # Alaska Airlines
    "AA",  # American Airlines
    "BA",  # British Airways
    "CX",  # Cathay Pacific
    "FJ",  # Fiji Airways
    "AY",  # Finnair
    "IB",  # Iberia
    "JL",  # Japan Airlines
    "QF",  # Qantas
    "QR",  # Qatar Airways
    "RJ",  # Royal Jordanian
    "AT",  # Royal Air Maroc
    "UL",  # SriLankan Airlines
    "MH",  # Malaysia Airlines
    "WY",  # Oman Air
}

SKYTEAM_MEMBERS: Set[str] = {
    "AR",  # Aerolíneas Argentinas
    "AM",  # Aeroméxico
    "UX",  # Air Europa
    "AF",  # Air France
    "CI",  # China Airlines
    "MU",  # China Eastern Airlines
    "DL",  # Delta Air Lines
    "GA",  # Garuda Indonesia
    "KQ",  # Kenya Airways
    "ME",  # Middle East Airlines
    "KL",  # KLM Royal Dutch Airlines
    "KE",  # Korean Air
    "SV",  # Saudia
    "SK",  # SAS
    "RO",  # TAROM
    "VN",  # Vietnam Airlines
    "VS",  # Virgin Atlantic
    "MF",  # Xiamen Airlines
}

ALLIANCE_MAP: Dict[Alliance, Set[str]] = {
    Alliance.STAR_ALLIANCE: STAR_ALLIANCE_MEMBERS,
    Alliance.ONEWORLD: ONEWORLD_MEMBERS,
    Alliance.SKYTEAM: SKYTEAM_MEMBERS,
}


def get_airline_alliance(code: str) -> Optional[Alliance]:
    """Get the alliance for an airline, or None for unaligned carriers."""
    code = code.upper()
    for alliance, members in ALLIANCE_MAP.items():
        if code in members:
            return alliance
    return None


def is_star_alliance_airline(code: str) -> bool:
    return get_airline_alliance(code) == Alliance.STAR_ALLIANCE


def eligible_programs(
    airline: str,
    programs: Iterable[LoyaltyProgram],
    program_order: Optional[Sequence[str]] = None,
) -> List[str]:
    """
    Programs able to price an airline's flights, in fallback order.

    Args:
        airline: Operating airline code
        programs: Known programs with their alliance codes
        program_order: Preferred ordering of program codes; programs not
            listed keep their input order after the listed ones

    Returns:
        Program codes sharing the airline's alliance
    """
    alliance = get_airline_alliance(airline)
    if alliance is None:
        return []

    codes: List[str] = []
    for program in programs:
        if (program.alliance or "").upper() == alliance.value and program.code not in codes:
            codes.append(program.code)

    if program_order:
        rank = {code.upper(): index for index, code in enumerate(program_order)}
        codes.sort(key=lambda code: rank.get(code, len(rank)))
    return codes


__all__ = [
    "Alliance",
    "ALLIANCE_MAP",
    "STAR_ALLIANCE_MEMBERS",
    "ONEWORLD_MEMBERS",
    "SKYTEAM_MEMBERS",
    "get_airline_alliance",
    "is_star_alliance_airline",
    "eligible_programs",
]
