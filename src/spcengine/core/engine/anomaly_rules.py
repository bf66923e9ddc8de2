"""Western Electric rules for SPC anomaly detection.

Each of the eight rules is a small state machine: ``initial_state()`` returns an
immutable state, and ``step()`` consumes one point and returns the next state
plus an optional AnomalyRecord. Scanning a series folds ``step`` left to right.
Rule states are never shared, so rules can be evaluated independently before
their records are merged.

Zones come from the primary chart: sigma = (UCL - center) / 3,
Zone A = (2 sigma, 3 sigma], Zone B = (1 sigma, 2 sigma], Zone C = [0, 1 sigma].

Merge policy: one record per index, the most severe one wins
(critical > warning > info); among equal severities the lowest rule id wins.

References:
    - Western Electric Company, "Statistical Quality Control Handbook" (1956)
    - AIAG SPC Manual, 2nd Edition
"""

import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Iterable, Protocol, Sequence

from spcengine.core.engine.control_limits import (
    ControlLimits,
    ControlLimitSet,
    primary_limits,
)
from spcengine.utils.statistics import ZoneBoundaries, calculate_zones


class Severity(Enum):
    """Anomaly severity levels."""
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"

    @property
    def rank(self) -> int:
        """Total order used by the merge: higher is more severe."""
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {Severity.INFO: 1, Severity.WARNING: 2, Severity.CRITICAL: 3}


@dataclass(frozen=True)
class AnomalyRecord:
    """A rule firing at one point of the derived series.

    Attributes:
        index: Position of the triggering point in the derived series
        value: Value of the triggering point
        rule_id: Rule number (1-8)
        severity: Severity of the rule
        description: Human-readable rationale
    """
    index: int
    value: float
    rule_id: int
    severity: Severity
    description: str


def _side(value: float, center: float) -> str | None:
    if value > center:
        return "above"
    if value < center:
        return "below"
    return None


def _describe_position(value: float, zones: ZoneBoundaries, zone_name: str) -> str:
    side = _side(value, zones.center_line)
    if side is None:
        return (
            f"current point on the center line (value {value:.4f}, "
            f"{zone_name} boundaries {zones.minus_1_sigma:.4f} and {zones.plus_1_sigma:.4f})"
        )
    boundary = zones.plus_1_sigma if side == "above" else zones.minus_1_sigma
    return (
        f"current point {side} the center line (value {value:.4f}, "
        f"center line {zones.center_line:.4f}, {zone_name} boundary {boundary:.4f})"
    )


def _sigma_multiple(value: float, zones: ZoneBoundaries) -> float:
    if zones.sigma == 0:
        return math.inf
    return zones.distance(value) / zones.sigma


class AnomalyRule(Protocol):
    """Protocol for rule implementations."""

    @property
    def rule_id(self) -> int:
        """Rule number (1-8)."""
        ...

    @property
    def rule_name(self) -> str:
        """Human-readable rule name."""
        ...

    @property
    def severity(self) -> Severity:
        """Severity of records emitted by this rule."""
        ...

    def initial_state(self) -> Any:
        """State before the first point."""
        ...

    def step(
        self,
        state: Any,
        index: int,
        value: float,
        limits: ControlLimits,
        zones: ZoneBoundaries,
    ) -> tuple[Any, AnomalyRecord | None]:
        """Consume one point.

        Returns:
            The next state and the record emitted at this index, if any
        """
        ...


class _RuleBase:
    rule_id: int
    rule_name: str
    severity: Severity

    def _record(self, index: int, value: float, description: str) -> AnomalyRecord:
        return AnomalyRecord(
            index=index,
            value=value,
            rule_id=self.rule_id,
            severity=self.severity,
            description=f"Rule {self.rule_id} ({self.rule_name}): {description}",
        )


@dataclass(frozen=True)
class RunState:
    """Length of the current run and, where relevant, its side."""
    count: int = 0
    side: str | None = None


@dataclass(frozen=True)
class TrendState:
    previous: float | None = None
    count: int = 1
    direction: str | None = None
    start_value: float | None = None


@dataclass(frozen=True)
class AlternationState:
    previous: float | None = None
    previous_diff: float | None = None
    count: int = 1


@dataclass(frozen=True)
class WindowState:
    """Values preceding the current point, oldest first."""
    preceding: tuple[float, ...] = ()


class Rule1BeyondLimits(_RuleBase):
    """Rule 1: One point beyond the control limits (3 sigma).

    Points exactly on a limit do not fire.
    """

    rule_id = 1
    rule_name = "Beyond 3 sigma"
    severity = Severity.CRITICAL

    def initial_state(self) -> None:
        return None

    def step(self, state, index, value, limits, zones):
        if value > limits.ucl:
            direction, limit_name, limit = "above", "UCL", limits.ucl
        elif value < limits.lcl:
            direction, limit_name, limit = "below", "LCL", limits.lcl
        else:
            return state, None

        return state, self._record(
            index,
            value,
            f"value {value:.4f} is {direction} the {limit_name} {limit:.4f}, "
            f"about {_sigma_multiple(value, zones):.1f} sigma from the center "
            f"line {limits.center_line:.4f}",
        )


class Rule2SameSide(_RuleBase):
    """Rule 2: Nine or more consecutive points on the same side of the center line.

    The run restarts at 1 on a side change and at 0 on a point exactly on the
    center line. Every point from the ninth onwards fires.
    """

    rule_id = 2
    rule_name = "9 points same side"
    severity = Severity.WARNING
    min_run = 9

    def initial_state(self) -> RunState:
        return RunState()

    def step(self, state, index, value, limits, zones):
        side = _side(value, limits.center_line)
        if side is None:
            return RunState(), None

        count = state.count + 1 if side == state.side else 1
        new_state = RunState(count=count, side=side)

        if count < self.min_run:
            return new_state, None
        return new_state, self._record(
            index,
            value,
            f"{count} consecutive points {side} the center line "
            f"(value {value:.4f}, center line {limits.center_line:.4f})",
        )


class Rule3Trend(_RuleBase):
    """Rule 3: Six or more consecutive points steadily increasing or decreasing.

    A zero difference restarts the run; a change of direction starts a new run
    of two points (the previous and the current one).
    """

    rule_id = 3
    rule_name = "6 points trending"
    severity = Severity.WARNING
    min_run = 6

    def initial_state(self) -> TrendState:
        return TrendState()

    def step(self, state, index, value, limits, zones):
        if state.previous is None:
            return replace(state, previous=value), None

        diff = value - state.previous
        if diff == 0:
            return TrendState(previous=value), None

        direction = "increasing" if diff > 0 else "decreasing"
        if direction == state.direction:
            new_state = replace(state, previous=value, count=state.count + 1)
        else:
            new_state = TrendState(
                previous=value,
                count=2,
                direction=direction,
                start_value=state.previous,
            )

        if new_state.count < self.min_run:
            return new_state, None
        change = abs(value - new_state.start_value)
        return new_state, self._record(
            index,
            value,
            f"{new_state.count} consecutive points {direction} "
            f"(from {new_state.start_value:.4f} to {value:.4f}, change {change:.4f})",
        )


class Rule4Alternating(_RuleBase):
    """Rule 4: Fourteen or more points alternating up and down.

    The counter starts at 1, grows by one each time consecutive differences flip
    sign, and falls back to 1 when they don't or when either difference is zero.
    """

    rule_id = 4
    rule_name = "14 points alternating"
    severity = Severity.WARNING
    min_count = 14

    def initial_state(self) -> AlternationState:
        return AlternationState()

    def step(self, state, index, value, limits, zones):
        if state.previous is None:
            return replace(state, previous=value), None

        diff = value - state.previous
        if state.previous_diff is None:
            return replace(state, previous=value, previous_diff=diff), None

        if state.previous_diff == 0 or diff == 0:
            count = 1
        elif (state.previous_diff > 0) != (diff > 0):
            count = state.count + 1
        else:
            count = 1

        new_state = AlternationState(previous=value, previous_diff=diff, count=count)
        if count < self.min_count:
            return new_state, None
        return new_state, self._record(
            index,
            value,
            f"{count} consecutive points alternating up and down "
            f"(value {value:.4f})",
        )


class _WindowRule(_RuleBase):
    """Sliding window of the current point and ``window_size - 1`` preceding ones."""

    window_size: int

    def initial_state(self) -> WindowState:
        return WindowState()

    def _advance(self, state: WindowState, value: float) -> tuple[WindowState, tuple[float, ...] | None]:
        window = (*state.preceding, value)
        new_state = WindowState(preceding=window[-(self.window_size - 1):])
        if len(window) < self.window_size:
            return new_state, None
        return new_state, window


class Rule5ZoneA(_WindowRule):
    """Rule 5: Two out of three consecutive points in Zone A, same side.

    Only points on the current point's side of the center line count; a current
    point exactly on the center line has no side and never fires.
    """

    rule_id = 5
    rule_name = "2 of 3 in Zone A"
    severity = Severity.WARNING
    window_size = 3
    min_count = 2

    def step(self, state, index, value, limits, zones):
        new_state, window = self._advance(state, value)
        if window is None:
            return new_state, None

        side = _side(value, zones.center_line)
        if side is None:
            return new_state, None

        count = sum(
            1 for v in window
            if zones.in_zone_a(v) and _side(v, zones.center_line) == side
        )
        if count < self.min_count:
            return new_state, None

        if side == "above":
            zone_range = f"{zones.plus_2_sigma:.4f} to {zones.plus_3_sigma:.4f}"
        else:
            zone_range = f"{zones.minus_3_sigma:.4f} to {zones.minus_2_sigma:.4f}"
        return new_state, self._record(
            index,
            value,
            f"{count} of the last 3 points in Zone A {side} the center line "
            f"(value {value:.4f}, Zone A {zone_range})",
        )


class Rule6ZoneB(_WindowRule):
    """Rule 6: Four out of five consecutive points beyond 1 sigma, either side."""

    rule_id = 6
    rule_name = "4 of 5 in Zone B or beyond"
    severity = Severity.INFO
    window_size = 5
    min_count = 4

    def step(self, state, index, value, limits, zones):
        new_state, window = self._advance(state, value)
        if window is None:
            return new_state, None

        count = sum(1 for v in window if zones.beyond_zone_c(v))
        if count < self.min_count:
            return new_state, None

        return new_state, self._record(
            index,
            value,
            f"{count} of the last 5 points beyond 1 sigma, "
            + _describe_position(value, zones, "Zone B"),
        )


class Rule7ZoneC(_RuleBase):
    """Rule 7: Fifteen or more consecutive points within 1 sigma (stratification)."""

    rule_id = 7
    rule_name = "15 points in Zone C"
    severity = Severity.INFO
    min_run = 15

    def initial_state(self) -> RunState:
        return RunState()

    def step(self, state, index, value, limits, zones):
        if not zones.in_zone_c(value):
            return RunState(), None

        new_state = RunState(count=state.count + 1)
        if new_state.count < self.min_run:
            return new_state, None
        return new_state, self._record(
            index,
            value,
            f"{new_state.count} consecutive points within 1 sigma of the center line "
            f"(value {value:.4f}, center line {zones.center_line:.4f}, "
            f"Zone C {zones.minus_1_sigma:.4f} to {zones.plus_1_sigma:.4f})",
        )


class Rule8BeyondZoneC(_RuleBase):
    """Rule 8: Eight or more consecutive points beyond 1 sigma, either side (mixture)."""

    rule_id = 8
    rule_name = "8 points beyond Zone C"
    severity = Severity.WARNING
    min_run = 8

    def initial_state(self) -> RunState:
        return RunState()

    def step(self, state, index, value, limits, zones):
        if not zones.beyond_zone_c(value):
            return RunState(), None

        new_state = RunState(count=state.count + 1)
        if new_state.count < self.min_run:
            return new_state, None

        return new_state, self._record(
            index,
            value,
            f"{new_state.count} consecutive points beyond 1 sigma, "
            + _describe_position(value, zones, "Zone C"),
        )


def _resolve_chart(limits: ControlLimitSet | ControlLimits) -> ControlLimits:
    if isinstance(limits, ControlLimits):
        return limits
    return primary_limits(limits)


def scan_rule(
    rule: AnomalyRule,
    values: Sequence[float],
    limits: ControlLimitSet | ControlLimits,
) -> list[AnomalyRecord]:
    """Run one rule over the whole series and collect its records."""
    chart = _resolve_chart(limits)
    zones = calculate_zones(chart.center_line, chart.sigma, ucl=chart.ucl, lcl=chart.lcl)

    state = rule.initial_state()
    records = []
    for index, value in enumerate(values):
        state, record = rule.step(state, index, value, chart, zones)
        if record is not None:
            records.append(record)
    return records


def merge_anomalies(records: Iterable[AnomalyRecord]) -> list[AnomalyRecord]:
    """Keep one record per index, the most severe one, sorted by index.

    Among records of equal severity at the same index the lowest rule id wins.
    """
    merged: dict[int, AnomalyRecord] = {}
    for record in sorted(records, key=lambda r: r.rule_id):
        existing = merged.get(record.index)
        if existing is None or record.severity.rank > existing.severity.rank:
            merged[record.index] = record

    return [merged[index] for index in sorted(merged)]


class WesternElectricRuleLibrary:
    """Aggregates and manages all eight Western Electric rules.

    Provides a central registry for the rules and methods to scan a series with
    them individually or collectively.
    """

    def __init__(self):
        """Initialize the library with all eight rules."""
        self._rules: dict[int, AnomalyRule] = {}
        self._register_default_rules()

    def _register_default_rules(self) -> None:
        rules = [
            Rule1BeyondLimits(),
            Rule2SameSide(),
            Rule3Trend(),
            Rule4Alternating(),
            Rule5ZoneA(),
            Rule6ZoneB(),
            Rule7ZoneC(),
            Rule8BeyondZoneC(),
        ]
        for rule in rules:
            self._rules[rule.rule_id] = rule

    @property
    def rule_ids(self) -> list[int]:
        return sorted(self._rules)

    def scan(
        self,
        values: Sequence[float],
        limits: ControlLimitSet | ControlLimits,
        enabled_rules: Iterable[int] | None = None,
    ) -> dict[int, list[AnomalyRecord]]:
        """Run every enabled rule and return its unmerged records by rule id.

        Args:
            values: Primary-chart values (subgroup means or individual values)
            limits: Control limit set, or the primary chart limits directly
            enabled_rules: Rule ids to run (None = all); unknown ids are ignored
        """
        if enabled_rules is None:
            enabled_rules = self._rules.keys()

        return {
            rule_id: scan_rule(self._rules[rule_id], values, limits)
            for rule_id in sorted(set(enabled_rules))
            if rule_id in self._rules
        }

    def check_all(
        self,
        values: Sequence[float],
        limits: ControlLimitSet | ControlLimits,
        enabled_rules: Iterable[int] | None = None,
    ) -> list[AnomalyRecord]:
        """Run every enabled rule and merge the records to one per index."""
        per_rule = self.scan(values, limits, enabled_rules)
        return merge_anomalies(
            record for records in per_rule.values() for record in records
        )

    def check_single(
        self,
        values: Sequence[float],
        limits: ControlLimitSet | ControlLimits,
        rule_id: int,
    ) -> list[AnomalyRecord] | None:
        """Run a single rule.

        Returns:
            The rule's records, or None if the rule id is unknown
        """
        rule = self._rules.get(rule_id)
        if rule is None:
            return None
        return scan_rule(rule, values, limits)

    def get_rule(self, rule_id: int) -> AnomalyRule | None:
        """Get rule by ID."""
        return self._rules.get(rule_id)


def detect_anomalies(
    values: Sequence[float],
    limits: ControlLimitSet | ControlLimits,
    enabled_rules: Iterable[int] | None = None,
) -> list[AnomalyRecord]:
    """Scan ``values`` with the enabled rules and return the merged records."""
    return WesternElectricRuleLibrary().check_all(values, limits, enabled_rules)
