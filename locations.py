import math
import re
from dataclasses import dataclass
from typing import Iterable, List

AVERAGE_EARTH_RADIUS_KM = 6371.0

# id,name,<anything>,latitude,longitude
_RECORD = re.compile(r"^([0-9]+),([^,]+),.*,(-?[0-9.]+),(-?[0-9.]+)$")


@dataclass(frozen=True)
class Location:
    name: str
    latitude: float
    longitude: float

    def distance_to(self, target: "Location") -> float:
        """Great-circle distance in km (haversine formula)."""
        theta_self = math.radians(self.latitude)
        theta_target = math.radians(target.latitude)
        delta_theta = math.radians(target.latitude - self.latitude)
        delta_lambda = math.radians(target.longitude - self.longitude)
        a = (math.sin(delta_theta / 2) ** 2 +
             math.cos(theta_self) * math.cos(theta_target) * math.sin(delta_lambda / 2) ** 2)
        c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
        return AVERAGE_EARTH_RADIUS_KM * c


def parse_line(line: str) -> Location:
    match = _RECORD.match(line.strip())
    if match is None:
        raise ValueError(f"Malformed location record: {line.strip()!r}")
    try:
        latitude = float(match.group(3))
        longitude = float(match.group(4))
    except ValueError:
        raise ValueError(f"Latitude/Longitude must be numeric: {line.strip()!r}")
    return Location(match.group(2), latitude, longitude)


def read_locations(lines: Iterable[str]) -> List[Location]:
    """Parse location records, skipping blank lines and the header line."""
    locations: List[Location] = []
    header_seen = False
    for line_no, line in enumerate(lines, start=1):
        if line.strip() == "":
            continue
        if not header_seen:
            header_seen = True
            continue
        try:
            locations.append(parse_line(line))
        except ValueError as e:
            raise ValueError(f"line {line_no}: {e}") from e
    return locations
