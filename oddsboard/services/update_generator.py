"""Odds update generation: feed diffing and randomized simulation"""
import random
from typing import Dict, Iterable, List, Optional

from ..storage.models import (
    Match,
    OddsDirective,
    OUTCOMES,
    TREND_DOWN,
    TREND_NEUTRAL,
    TREND_UP,
)
from ..utils.logger import setup_logger

logger = setup_logger(__name__)

CHANGE_THRESHOLD = 0.01
MIN_ODDS = 1.01

DEFAULT_UPDATE_PROBABILITY = 0.3
DEFAULT_VOLATILITY = 0.15
INTERACTIVE_VOLATILITY = 0.3


def simulate_odds_change(current_odds: float, volatility: float, rng: random.Random) -> float:
    """
    Simulate an odds fluctuation

    Args:
        current_odds: Current odds value
        volatility: Volatility factor (0-1)
        rng: Random source

    Returns:
        New odds, rounded to two decimals and never below 1.01
    """
    variation = (rng.random() - 0.5) * volatility
    new_odds = current_odds * (1 + variation)
    return max(MIN_ODDS, round(new_odds, 2))


def calculate_trend(old_odds: float, new_odds: float) -> str:
    """Direction of a change; moves smaller than the threshold are neutral"""
    difference = new_odds - old_odds
    if abs(difference) < CHANGE_THRESHOLD:
        return TREND_NEUTRAL
    return TREND_UP if difference > 0 else TREND_DOWN


class UpdateGenerator:
    """Produces odds directives for the store"""

    def __init__(
        self,
        update_probability: float = DEFAULT_UPDATE_PROBABILITY,
        volatility: float = DEFAULT_VOLATILITY,
        rng: Optional[random.Random] = None
    ):
        """
        Initialize update generator

        Args:
            update_probability: Chance that a match changes on a simulated tick
            volatility: Volatility factor for simulated ticks
            rng: Optional random source (useful for deterministic tests)
        """
        self.update_probability = update_probability
        self.volatility = volatility
        self.rng = rng or random.Random()

    def diff(self, current: Iterable[Match], fresh: Iterable[Match]) -> List[OddsDirective]:
        """
        Compare fresh feed data with the current collection

        Only matches present in both collections are compared; added or
        removed matches produce no directives.

        Args:
            current: Matches currently held by the store
            fresh: Freshly normalized matches

        Returns:
            One directive per outcome whose odds moved by more than 0.01
        """
        current_by_id: Dict = {match.id: match for match in current}
        directives = []

        for fresh_match in fresh:
            current_match = current_by_id.get(fresh_match.id)
            if current_match is None:
                continue

            for outcome in OUTCOMES:
                old_odds = current_match.odds[outcome]
                new_odds = fresh_match.odds[outcome]
                if abs(new_odds - old_odds) > CHANGE_THRESHOLD:
                    directives.append(OddsDirective(
                        match_id=fresh_match.id,
                        outcome=outcome,
                        new_odds=new_odds,
                        trend=TREND_UP if new_odds > old_odds else TREND_DOWN
                    ))

        logger.info(f"Generated {len(directives)} real-time updates from API")
        return directives

    def synthesize(
        self,
        matches: Iterable[Match],
        probability: Optional[float] = None,
        volatility: Optional[float] = None
    ) -> List[OddsDirective]:
        """
        Generate simulated updates for the current collection

        Each match independently changes with the given probability; one
        of its outcomes is picked uniformly and perturbed.
        """
        if probability is None:
            probability = self.update_probability
        if volatility is None:
            volatility = self.volatility

        directives = []
        for match in matches:
            if self.rng.random() < probability:
                outcome = self.rng.choice(OUTCOMES)
                directives.append(self.nudge(match, outcome, volatility))

        logger.debug(f"Generated {len(directives)} simulated updates")
        return directives

    def nudge(self, match: Match, outcome: str, volatility: float = INTERACTIVE_VOLATILITY) -> OddsDirective:
        """Simulated change of a single outcome"""
        current_odds = match.odds[outcome]
        new_odds = simulate_odds_change(current_odds, volatility, self.rng)
        return OddsDirective(
            match_id=match.id,
            outcome=outcome,
            new_odds=new_odds,
            trend=calculate_trend(current_odds, new_odds)
        )
