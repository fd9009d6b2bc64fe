"""
regulations.py - Which passenger-rights regime covers a flight
===============================================================
Coverage is decided from the operating airline and both airports. The
checks run in priority order UK CAA, EU261, US DOT. A flight touching the
UK or Dublin, or flown by a UK or UK-registered low-cost carrier, is
handled under UK CAA rules even when EU261 would also apply.
"""

from flghtly.airports import get_airport_country, normalize_airport_code
from flghtly.schemas import EligibilityResult


UK_CAA = "UK CAA"
EU261 = "EU261"
US_DOT = "US DOT"

CURRENCY_SYMBOLS = {UK_CAA: "£", EU261: "€", US_DOT: "$"}

UK_COUNTRIES = {"United Kingdom"}
# Airports outside the UK whose flights are handled under UK CAA rules.
UK_COVERED_AIRPORTS = {"DUB"}

# EU member states plus the EEA and Switzerland, where EU261 also applies.
EU_COUNTRIES = {
    "Austria", "Belgium", "Bulgaria", "Croatia", "Cyprus", "Czech Republic",
    "Denmark", "Estonia", "Finland", "France", "Germany", "Greece", "Hungary",
    "Ireland", "Italy", "Latvia", "Lithuania", "Luxembourg", "Malta",
    "Netherlands", "Poland", "Portugal", "Romania", "Slovakia", "Slovenia",
    "Spain", "Sweden",
    "Iceland", "Liechtenstein", "Norway", "Switzerland",
}

US_COUNTRIES = {"United States"}

UK_AIRLINES = [
    "British Airways",
    "Virgin Atlantic",
    "EasyJet",
    "Jet2",
    "TUI Airways",
    "Loganair",
    "Eastern Airways",
    "Flybe",
    "Ryanair",
    "Wizz Air",
]

EU_AIRLINES = [
    "Lufthansa",
    "Air France",
    "KLM",
    "Ryanair",
    "Wizz Air",
    "Iberia",
    "Vueling",
    "ITA Airways",
    "Alitalia",
    "Aer Lingus",
    "SAS",
    "Swiss",
    "Austrian",
    "Brussels Airlines",
    "TAP Air Portugal",
    "Finnair",
    "Aegean",
    "LOT Polish",
    "Eurowings",
    "Norwegian",
    "Icelandair",
]

US_AIRLINES = [
    "American Airlines",
    "Delta",
    "United",
    "Southwest",
    "JetBlue",
    "Alaska Airlines",
    "Spirit",
    "Frontier",
    "Hawaiian",
]

AIRLINE_COMPENSATION_INFO = {
    "Lufthansa": "Lufthansa typically processes EU261 claims within 2-4 weeks",
    "British Airways": "British Airways has a dedicated EU261 claims portal",
    "Air France": "Air France offers online claim submission for EU261 cases",
    "KLM": "KLM provides automated EU261 compensation through their website",
    "Ryanair": "Ryanair processes EU261 claims but may require additional documentation",
    "American Airlines": "American Airlines may offer compensation for delays over 4 hours",
    "Delta": "Delta provides assistance for significant delays on a case-by-case basis",
    "United": "United may offer compensation for delays over 4 hours",
    "Southwest": "Southwest offers compensation for delays over 4 hours",
    "JetBlue": "JetBlue provides assistance for significant delays",
}
DEFAULT_AIRLINE_INFO = "Check with airline for compensation policy"


def _airline_matches(airline, carriers):
    name = (airline or "").lower()
    if not name:
        return False
    return any(carrier.lower() in name for carrier in carriers)


def _touches_country(flight, countries):
    for code in (flight.departure_airport, flight.arrival_airport):
        if get_airport_country(code) in countries:
            return True
    return False


def is_uk_covered(flight):
    if _airline_matches(flight.airline, UK_AIRLINES) or _touches_country(flight, UK_COUNTRIES):
        return True
    return any(normalize_airport_code(code) in UK_COVERED_AIRPORTS
               for code in (flight.departure_airport, flight.arrival_airport))


def is_eu_covered(flight):
    return _airline_matches(flight.airline, EU_AIRLINES) or _touches_country(flight, EU_COUNTRIES)


def is_us_covered(flight):
    return _airline_matches(flight.airline, US_AIRLINES) or _touches_country(flight, US_COUNTRIES)


def is_us_airport(code):
    return get_airport_country(normalize_airport_code(code)) in US_COUNTRIES


def is_us_domestic(flight):
    return is_us_airport(flight.departure_airport) and is_us_airport(flight.arrival_airport)


def determine_regulation(flight):
    """Return UK_CAA, EU261, US_DOT or None, checked in that order."""
    if is_uk_covered(flight):
        return UK_CAA
    if is_eu_covered(flight):
        return EU261
    if is_us_covered(flight):
        return US_DOT
    return None


def format_amount(symbol, value):
    """'€', 250 -> '€250'. Values are whole currency units."""
    return f"{symbol}{int(value)}"


def round_half_up(value):
    """Round to the nearest whole unit, halves going up (62.5 -> 63)."""
    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)


def get_airline_compensation_info(airline):
    name = (airline or "").lower()
    for carrier, info in AIRLINE_COMPENSATION_INFO.items():
        if carrier.lower() in name:
            return info
    return DEFAULT_AIRLINE_INFO


def format_hours(hours):
    """1.5 -> '1.5', 2.0 -> '2'."""
    hours = round(float(hours), 2)
    if hours == int(hours):
        return str(int(hours))
    return f"{hours:g}"


def not_covered_result():
    """Result for a route none of the three regimes applies to."""
    return EligibilityResult(
        eligible=False,
        amount="€0",
        confidence=80,
        message=("This flight may not be covered by major compensation regulations. "
                 "We provide assistance services only and cannot guarantee eligibility."),
        regulation="Unknown",
        reason="Route not covered by EU261, UK CAA, or US DOT",
    )
