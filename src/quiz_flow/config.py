"""
quiz-flow configuration

API endpoints, timing and tracking behavior live here.
Environment variables override defaults for deployment flexibility.
"""

import os
from dataclasses import dataclass, field
from typing import Literal


@dataclass
class ApiConfig:
    """Where the public quiz API lives"""
    base_url: str = os.getenv("QUIZ_API_BASE_URL", "http://localhost:3000/api")
    timeout_seconds: float = float(os.getenv("QUIZ_API_TIMEOUT", "10.0"))
    user_agent: str = os.getenv("QUIZ_USER_AGENT", "quiz-flow/0.1")


@dataclass
class FlowConfig:
    """Quiz taking behavior"""
    # Pause between a single-choice/rating selection and the transition
    auto_advance_delay_seconds: float = float(os.getenv("QUIZ_AUTO_ADVANCE_DELAY", "0.25"))
    default_rating_scale: int = int(os.getenv("QUIZ_DEFAULT_RATING_SCALE", "5"))


@dataclass
class TrackingConfig:
    """Remote session tracking"""
    enabled: bool = os.getenv("QUIZ_TRACKING", "true").lower() == "true"
    transport: Literal["http", "mock"] = os.getenv("QUIZ_TRANSPORT", "http")


@dataclass
class Config:
    """Master config, import this"""
    api: ApiConfig = field(default_factory=ApiConfig)
    flow: FlowConfig = field(default_factory=FlowConfig)
    tracking: TrackingConfig = field(default_factory=TrackingConfig)

    # Quick presets
    @classmethod
    def fast_mode(cls) -> "Config":
        """For tests and scripted replays: no auto-advance pause"""
        cfg = cls()
        cfg.flow.auto_advance_delay_seconds = 0.0
        return cfg

    @classmethod
    def offline_mode(cls) -> "Config":
        """Run without a backend: sessions recorded in memory"""
        cfg = cls()
        cfg.tracking.transport = "mock"
        return cfg


# Singleton
config = Config()
