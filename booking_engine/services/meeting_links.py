"""
Meeting Link Generators

Allocate the join identifiers for a telehealth session. One generator per
video platform; :func:`get_link_generator` picks the right one.
"""

import secrets
import string
from abc import ABC, abstractmethod
from dataclasses import dataclass

from booking_engine.schemas.telehealth import TelehealthPlatform

_ID_ALPHABET = string.ascii_lowercase + string.digits


@dataclass(frozen=True)
class MeetingLink:
    """Join identifiers for one session."""

    meeting_id: str
    meeting_url: str
    passcode: str
    host_key: str


class MeetingLinkGenerator(ABC):
    """Base class for platform link generators."""

    base_url: str

    def generate_meeting_id(self) -> str:
        return "".join(secrets.choice(_ID_ALPHABET) for _ in range(22))

    @staticmethod
    def generate_passcode() -> str:
        return f"{secrets.randbelow(1_000_000):06d}"

    @staticmethod
    def generate_host_key() -> str:
        return secrets.token_hex(6)

    @abstractmethod
    def build_url(self, meeting_id: str) -> str:
        """Join URL for a meeting id."""

    def create_link(self) -> MeetingLink:
        """Allocate a fresh set of join identifiers."""
        meeting_id = self.generate_meeting_id()
        return MeetingLink(
            meeting_id=meeting_id,
            meeting_url=self.build_url(meeting_id),
            passcode=self.generate_passcode(),
            host_key=self.generate_host_key(),
        )


class ZoomLinkGenerator(MeetingLinkGenerator):
    base_url = "https://zoom.us/j/"

    def generate_meeting_id(self) -> str:
        # Zoom meeting ids are numeric
        return "".join(secrets.choice(string.digits) for _ in range(11))

    def build_url(self, meeting_id: str) -> str:
        return f"{self.base_url}{meeting_id}"


class TeamsLinkGenerator(MeetingLinkGenerator):
    base_url = "https://teams.microsoft.com/l/meetup-join/"

    def build_url(self, meeting_id: str) -> str:
        return f"{self.base_url}{meeting_id}"


class GoogleMeetLinkGenerator(MeetingLinkGenerator):
    base_url = "https://meet.google.com/"

    def generate_meeting_id(self) -> str:
        # abc-defg-hij
        parts = (3, 4, 3)
        return "-".join(
            "".join(secrets.choice(string.ascii_lowercase) for _ in range(n)) for n in parts
        )

    def build_url(self, meeting_id: str) -> str:
        return f"{self.base_url}{meeting_id}"


_GENERATORS: dict[TelehealthPlatform, type[MeetingLinkGenerator]] = {
    TelehealthPlatform.ZOOM: ZoomLinkGenerator,
    TelehealthPlatform.TEAMS: TeamsLinkGenerator,
    TelehealthPlatform.GOOGLE_MEET: GoogleMeetLinkGenerator,
}


def get_link_generator(platform: TelehealthPlatform | str) -> MeetingLinkGenerator:
    """
    Get the link generator for a platform.

    Raises:
        ValueError: if the platform is not supported
    """
    return _GENERATORS[TelehealthPlatform(platform)]()
