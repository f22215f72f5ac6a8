"""
Base protocol for session transports

Defines the calls the quiz flow makes against the public quiz API:
fetching a definition and opening, patching and completing a session.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import urlparse, parse_qs

from ..quiz.schema import QuizDefinition


class TransportError(Exception):
    """Base exception for transport errors."""
    pass


class SessionTransportError(TransportError):
    """A session call (open, patch, complete) failed."""
    pass


class DefinitionLoadError(TransportError):
    """The quiz definition could not be loaded."""
    pass


@dataclass(frozen=True)
class Attribution:
    """UTM and referrer data captured when a session is opened."""
    utm_source: Optional[str] = None
    utm_medium: Optional[str] = None
    utm_campaign: Optional[str] = None
    utm_term: Optional[str] = None
    utm_content: Optional[str] = None
    referrer_url: Optional[str] = None

    def to_dict(self) -> dict:
        """Request body for POST /sessions; unset keys are left out."""
        data = {
            "utmSource": self.utm_source,
            "utmMedium": self.utm_medium,
            "utmCampaign": self.utm_campaign,
            "utmTerm": self.utm_term,
            "utmContent": self.utm_content,
            "referrerUrl": self.referrer_url,
        }
        return {k: v for k, v in data.items() if v}

    @classmethod
    def from_url(cls, url: Optional[str], referrer: Optional[str] = None) -> "Attribution":
        """
        Pick utm_* parameters out of a landing page URL.

        Args:
            url: URL the quiz was opened from
            referrer: Referring page, if known

        Returns:
            Attribution with empty parameters dropped
        """
        params = parse_qs(urlparse(url or "").query)

        def first(name: str) -> Optional[str]:
            values = params.get(name)
            return values[0] if values and values[0] else None

        return cls(
            utm_source=first("utm_source"),
            utm_medium=first("utm_medium"),
            utm_campaign=first("utm_campaign"),
            utm_term=first("utm_term"),
            utm_content=first("utm_content"),
            referrer_url=referrer or None,
        )


class SessionTransport(ABC):
    """
    Abstract base class for talking to the quiz API.

    Implementations raise DefinitionLoadError or SessionTransportError;
    deciding which failures are fatal is left to the caller.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Transport name (e.g., 'http', 'mock')."""
        pass

    @abstractmethod
    async def fetch_definition(self, quiz_id: str, *, preview: bool = False) -> QuizDefinition:
        """
        Load a quiz definition.

        Raises:
            DefinitionLoadError: When the quiz cannot be loaded
        """
        pass

    @abstractmethod
    async def open_session(self, quiz_id: str, attribution: Attribution) -> str:
        """
        Create a session and return its id.

        Raises:
            SessionTransportError: On any failure
        """
        pass

    @abstractmethod
    async def patch_answers(self, quiz_id: str, session_id: str, answers: dict[str, Any]) -> None:
        """
        Merge answers into a session (last write wins per question id).

        Raises:
            SessionTransportError: On any failure
        """
        pass

    @abstractmethod
    async def complete_session(
        self,
        quiz_id: str,
        session_id: str,
        *,
        lead_data: Optional[dict[str, str]] = None,
        answers: Optional[dict[str, Any]] = None,
    ) -> None:
        """
        Mark a session complete, optionally with lead data and final answers.

        Raises:
            SessionTransportError: On any failure
        """
        pass

    async def close(self) -> None:
        """Release network resources."""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"
