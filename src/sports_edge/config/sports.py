"""Sport registry.

Each sport has a fixed, ordered feature list. Order matters: the trained weight
vector is aligned with it, so training and prediction must use the same list.

The two moneyline features are read from a record's side 1 / side 2 moneylines,
the two form features from its derived rolling form; any other feature is read
from the record's sport-specific extras.
"""

from dataclasses import dataclass
from typing import Dict, List, Tuple


@dataclass(frozen=True)
class SportConfig:
    """Static configuration for one sport."""

    key: str
    display_name: str
    features: Tuple[str, ...]
    moneyline_features: Tuple[str, str]
    form_features: Tuple[str, str]
    is_team_season_sport: bool = True
    supports_spread: bool = False
    supports_total: bool = False

    @property
    def extra_features(self) -> Tuple[str, ...]:
        """Features that come from a record's extras mapping."""
        derived = set(self.moneyline_features) | set(self.form_features)
        return tuple(name for name in self.features if name not in derived)

    def validate(self) -> None:
        """Raise ValueError if the configuration is internally inconsistent."""
        if not self.features:
            raise ValueError(f"{self.key}: feature list is empty")
        if len(set(self.features)) != len(self.features):
            raise ValueError(f"{self.key}: duplicate feature names")
        for name in self.moneyline_features + self.form_features:
            if name not in self.features:
                raise ValueError(f"{self.key}: {name} is not in the feature list")
        if self.moneyline_features[0] == self.moneyline_features[1]:
            raise ValueError(f"{self.key}: moneyline features must be distinct")
        if self.form_features[0] == self.form_features[1]:
            raise ValueError(f"{self.key}: form features must be distinct")
        # Anything named like a moneyline gets de-vigged, so it has to be one of the pair
        stray = [
            name for name in self.features
            if "moneyline" in name and name not in self.moneyline_features
        ]
        if stray:
            raise ValueError(f"{self.key}: unpaired moneyline features {stray}")


_TEAM_FEATURES = ("team1_moneyline", "team2_moneyline", "team1_last5", "team2_last5")
_TEAM_MONEYLINES = ("team1_moneyline", "team2_moneyline")
_TEAM_FORM = ("team1_last5", "team2_last5")


SPORT_REGISTRY: Dict[str, SportConfig] = {
    "nfl": SportConfig(
        key="nfl",
        display_name="NFL Football",
        features=_TEAM_FEATURES,
        moneyline_features=_TEAM_MONEYLINES,
        form_features=_TEAM_FORM,
        supports_spread=True,
        supports_total=True,
    ),
    "ncaaf": SportConfig(
        key="ncaaf",
        display_name="College Football",
        features=_TEAM_FEATURES,
        moneyline_features=_TEAM_MONEYLINES,
        form_features=_TEAM_FORM,
        supports_spread=True,
        supports_total=True,
    ),
    "nba": SportConfig(
        key="nba",
        display_name="NBA Basketball",
        features=_TEAM_FEATURES,
        moneyline_features=_TEAM_MONEYLINES,
        form_features=_TEAM_FORM,
        supports_spread=True,
        supports_total=True,
    ),
    "ncaab": SportConfig(
        key="ncaab",
        display_name="College Basketball",
        features=_TEAM_FEATURES,
        moneyline_features=_TEAM_MONEYLINES,
        form_features=_TEAM_FORM,
        supports_spread=True,
        supports_total=True,
    ),
    "mlb": SportConfig(
        key="mlb",
        display_name="MLB Baseball",
        features=_TEAM_FEATURES,
        moneyline_features=_TEAM_MONEYLINES,
        form_features=_TEAM_FORM,
        supports_total=True,
    ),
    "nhl": SportConfig(
        key="nhl",
        display_name="NHL Hockey",
        features=_TEAM_FEATURES,
        moneyline_features=_TEAM_MONEYLINES,
        form_features=_TEAM_FORM,
        supports_total=True,
    ),
    "tennis": SportConfig(
        key="tennis",
        display_name="Tennis",
        features=(
            "player1_moneyline",
            "player2_moneyline",
            "player1_ranking",
            "player2_ranking",
            "player1_last5",
            "player2_last5",
            "player1_surface_win_pct",
            "player2_surface_win_pct",
        ),
        moneyline_features=("player1_moneyline", "player2_moneyline"),
        form_features=("player1_last5", "player2_last5"),
        is_team_season_sport=False,
    ),
    "mma": SportConfig(
        key="mma",
        display_name="Mixed Martial Arts",
        features=(
            "fighter1_moneyline",
            "fighter2_moneyline",
            "fighter1_ranking",
            "fighter2_ranking",
            "fighter1_last5",
            "fighter2_last5",
        ),
        moneyline_features=("fighter1_moneyline", "fighter2_moneyline"),
        form_features=("fighter1_last5", "fighter2_last5"),
        is_team_season_sport=False,
    ),
}


def validate_registry() -> None:
    """Validate every registered sport."""
    for key, config in SPORT_REGISTRY.items():
        if key != config.key:
            raise ValueError(f"Registry key {key} does not match config key {config.key}")
        config.validate()


def get_sport(sport: str) -> SportConfig:
    """Get a sport configuration by key (case-insensitive)."""
    config = SPORT_REGISTRY.get(sport.lower())
    if config is None:
        raise ValueError(f"Unknown sport: {sport}. Available: {list_sports()}")
    return config


def list_sports() -> List[str]:
    """List registered sport keys."""
    return list(SPORT_REGISTRY.keys())


validate_registry()
