"""
Hive Economy Simulator - Season Clock
=======================================
A campaign year split into weeks, grouped into seasons that carry global
modifiers (income, carrier speed, production time, storage capacity).

Default year: Spring weeks 1-7, Summer 8-14, Autumn 15-21. After the last
week the year ends and the clock stops.
"""

import logging
from typing import List, Optional

from hive_sim.constants import SEASON_LAST_WEEK, SECONDS_PER_WEEK
from hive_sim.errors import InvalidArgument
from hive_sim.events import EventQueue, SeasonChanged, WeekChanged, YearEnded
from hive_sim.models import SeasonData, SeasonModifiers

logger = logging.getLogger(__name__)


def default_seasons() -> List[SeasonData]:
    spring, summer, autumn = (SEASON_LAST_WEEK[k] for k in ("spring", "summer", "autumn"))
    return [
        SeasonData(name="spring", weeks=spring, description="Mild start"),
        SeasonData(name="summer", weeks=summer - spring, income_modifier=1.2, speed_modifier=1.1,
                   description="Peak bloom"),
        SeasonData(name="autumn", weeks=autumn - summer, income_modifier=0.9, speed_modifier=0.9,
                   production_time_modifier=1.1, storage_capacity_modifier=1.2,
                   description="Harvest and stockpile"),
    ]


class SeasonClock:
    def __init__(
        self,
        seasons: Optional[List[SeasonData]] = None,
        seconds_per_week: float = SECONDS_PER_WEEK,
        enabled: bool = True,
        events: Optional[EventQueue] = None,
    ):
        if seconds_per_week <= 0:
            raise InvalidArgument(f"seconds_per_week must be positive, got {seconds_per_week}")
        self.seasons = list(seasons) if seasons is not None else default_seasons()
        for s in self.seasons:
            if s.weeks <= 0:
                raise InvalidArgument(f"season {s.name} must last at least one week")
        self.seconds_per_week = seconds_per_week
        self.enabled = enabled
        self.events = events

        self.week = 1
        self.week_timer = 0.0
        self.year_ended = False

    @property
    def total_weeks(self) -> int:
        return sum(s.weeks for s in self.seasons)

    def season_for_week(self, week: int) -> Optional[SeasonData]:
        last = 0
        for season in self.seasons:
            last += season.weeks
            if week <= last:
                return season
        return None

    @property
    def current_season(self) -> Optional[SeasonData]:
        if not self.enabled:
            return None
        return self.season_for_week(self.week)

    @property
    def week_progress(self) -> float:
        return min(1.0, max(0.0, self.week_timer / self.seconds_per_week))

    @property
    def year_progress(self) -> float:
        if not self.total_weeks:
            return 0.0
        return min(1.0, (self.week - 1) / self.total_weeks)

    def modifiers(self) -> SeasonModifiers:
        season = self.current_season
        if season is None:
            return SeasonModifiers()
        return SeasonModifiers(
            income=season.income_modifier,
            speed=season.speed_modifier,
            production_time=season.production_time_modifier,
            storage_capacity=season.storage_capacity_modifier,
        )

    def start(self):
        """Announce the opening season and week."""
        season = self.current_season
        if season is None:
            return
        logger.info("Year started: %s, week %d", season.name, self.week)
        if self.events is not None:
            self.events.push(SeasonChanged(season=season.name))
            self.events.push(WeekChanged(week=self.week))

    def advance(self, dt: float) -> bool:
        """Move the clock forward. Returns True if the season changed."""
        if not self.enabled or self.year_ended or not self.seasons:
            return False

        changed = False
        self.week_timer += dt
        while self.week_timer >= self.seconds_per_week:
            self.week_timer -= self.seconds_per_week
            previous = self.season_for_week(self.week)
            self.week += 1

            if self.week > self.total_weeks:
                self.week = self.total_weeks
                self.year_ended = True
                logger.info("Year ended")
                if self.events is not None:
                    self.events.push(YearEnded())
                break

            current = self.season_for_week(self.week)
            if current is not previous:
                changed = True
                logger.info("Season changed to %s (week %d)", current.name, self.week)
                if self.events is not None:
                    self.events.push(SeasonChanged(season=current.name))
            if self.events is not None:
                self.events.push(WeekChanged(week=self.week))
        return changed

    def reset(self):
        self.week = 1
        self.week_timer = 0.0
        self.year_ended = False
