# survey_insights/services/insights.py
"""
Restaurant metrics computed from stamped responses.

Every metric keys off `required_question_category`: `recommendation` (NPS),
`overall_satisfaction` (CSAT), `revisit_intention` (loyalty) and
`visit_frequency` (customer mix). Inputs are plain dicts or ORM rows.
"""
from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Optional

UNKNOWN = "unknown"

NEW_VISIT = {"choice_1"}                           # first visit
REGULAR_VISIT = {"choice_2", "choice_3"}           # once or twice a year, every few months
LOYAL_VISIT = {"choice_4", "choice_5", "choice_6"}  # monthly, weekly, almost daily


def _get(r: Any, key: str):
    if isinstance(r, dict):
        return r.get(key)
    return getattr(r, key, None)


def _as_utc(dt: datetime) -> datetime:
    return dt.replace(tzinfo=timezone.utc) if dt.tzinfo is None else dt


def _ratings(responses: Iterable, category: str) -> list[int]:
    return [
        _get(r, "rating")
        for r in responses
        if _get(r, "required_question_category") == category and _get(r, "rating")
    ]


def _mean(values: list) -> Optional[float]:
    return sum(values) / len(values) if values else None


# -------------------- core metrics -------------------- #

def calculate_nps(responses: list) -> int:
    """Net promoter score on a 1..5 scale: 4-5 promote, 3 is neutral, 1-2 detract."""
    ratings = _ratings(responses, "recommendation")
    if not ratings:
        return 0
    promoters = sum(1 for v in ratings if v >= 4)
    detractors = sum(1 for v in ratings if v <= 2)
    return round((promoters - detractors) / len(ratings) * 100)


def calculate_csat(responses: list) -> int:
    ratings = _ratings(responses, "overall_satisfaction")
    if not ratings:
        return 0
    return round(_mean(ratings) / 5 * 100)


def calculate_loyalty_index(responses: list) -> int:
    revisit = _ratings(responses, "revisit_intention")
    recommend = _ratings(responses, "recommendation")
    if not revisit or not recommend:
        return 0
    return round((_mean(revisit) + _mean(recommend)) / 10 * 100)


def average_rating(responses: list) -> Optional[float]:
    """CSAT back on the 1..5 scale; None when nobody rated overall satisfaction."""
    if not _ratings(responses, "overall_satisfaction"):
        return None
    return calculate_csat(responses) / 20


def count_submissions(responses: list) -> int:
    """
    Submissions behind `responses`. Named ones are told apart by their
    customer row. Anonymous ones carry no id but answer each question at most
    once, so the most answered question gives a lower bound for them.
    """
    named = set()
    anonymous: dict = defaultdict(int)
    for r in responses:
        cid = _get(r, "customer_info_id")
        if cid is None:
            anonymous[_get(r, "question_id")] += 1
        else:
            named.add(cid)
    return len(named) + max(anonymous.values(), default=0)


def analyze_visit_frequency(responses: list) -> dict[str, int]:
    choices = [
        _get(r, "selected_option")
        for r in responses
        if _get(r, "required_question_category") == "visit_frequency" and _get(r, "selected_option")
    ]
    total = len(choices)
    if total == 0:
        return {"new_customers": 0, "regular_customers": 0, "loyal_customers": 0, "risk_segment": 0}

    new = sum(1 for c in choices if c in NEW_VISIT)
    regular = sum(1 for c in choices if c in REGULAR_VISIT)
    loyal = sum(1 for c in choices if c in LOYAL_VISIT)
    return {
        "new_customers": round(new / total * 100),
        "regular_customers": round(regular / total * 100),
        "loyal_customers": round(loyal / total * 100),
        "risk_segment": round(new / total * 100),
    }


def analyze_customer_segments(responses: list, customers: list) -> list[dict[str, Any]]:
    """
    Groups responses by (age_group, gender) of the answering customer, biggest
    segment first. Scores are 1..5 averages scaled to 0..100.
    """
    by_customer: dict = defaultdict(list)
    for r in responses:
        by_customer[_get(r, "customer_info_id")].append(r)

    segments: dict[tuple[str, str], list] = defaultdict(list)
    for c in customers:
        rows = by_customer.get(_get(c, "id"))
        if not rows:
            continue
        key = (_get(c, "age_group") or UNKNOWN, _get(c, "gender") or UNKNOWN)
        segments[key].extend(rows)

    out = []
    for (age_group, gender), rows in segments.items():
        def score(category: str) -> int:
            m = _mean(_ratings(rows, category))
            return round(m * 20) if m is not None else 0

        out.append({
            "segment": f"{age_group} {gender}",
            "age_group": age_group,
            "gender": gender,
            "count": len({_get(r, "customer_info_id") for r in rows}),
            "avg_satisfaction": score("overall_satisfaction"),
            "revisit_intention": score("revisit_intention"),
            "recommendation_score": score("recommendation"),
        })
    out.sort(key=lambda s: s["count"], reverse=True)
    return out


def analyze_trends(responses: list, now: Optional[datetime] = None) -> dict[str, str]:
    """Compares overall satisfaction of the last 7 days against the 7 days before."""
    now = _as_utc(now or datetime.now(timezone.utc))
    week_ago = now - timedelta(days=7)
    two_weeks_ago = now - timedelta(days=14)

    recent, previous = [], []
    for r in responses:
        created = _get(r, "created_at")
        if created is None or _get(r, "required_question_category") != "overall_satisfaction":
            continue
        rating = _get(r, "rating")
        if not rating:
            continue
        created = _as_utc(created)
        if created >= week_ago:
            recent.append(rating)
        elif created >= two_weeks_ago:
            previous.append(rating)

    trend, growth = "stable", "moderate"
    if recent and previous:
        change = _mean(recent) - _mean(previous)
        if change > 0.3:
            trend = "rising"
        elif change < -0.3:
            trend = "falling"

        nps = calculate_nps(responses)
        loyalty = calculate_loyalty_index(responses)
        if nps > 50 and loyalty > 70:
            growth = "high"
        elif nps > 20 and loyalty > 50:
            growth = "moderate"
        else:
            growth = "low"

    return {"satisfaction_trend": trend, "growth_potential": growth}


# -------------------- narrative -------------------- #

def level(value: int, good: int, fair: int, labels=("excellent", "average", "needs improvement")) -> str:
    if value > good:
        return labels[0]
    if value > fair:
        return labels[1]
    return labels[2]


def build_insights(
    nps: int,
    csat: int,
    loyalty_index: int,
    segments: list[dict[str, Any]],
    visits: dict[str, int],
) -> dict[str, list[str]]:
    critical: list[str] = []
    priorities: list[str] = []
    recommendations: list[str] = []
    strengths: list[str] = []
    weaknesses: list[str] = []
    opportunities: list[str] = []

    if nps < 0:
        critical.append("NPS is negative: high risk of losing customers")
        priorities.append("Identify and fix the main customer complaints")
    elif nps > 50:
        strengths.append("High recommendation score and strong brand loyalty")

    if csat < 60:
        critical.append("Satisfaction is below average; service needs urgent work")
        priorities.append("Raise the quality of the core service")
    elif csat > 80:
        strengths.append("High customer satisfaction with the service")

    if loyalty_index < 50:
        weaknesses.append("Low loyalty: a retention strategy is needed")
        priorities.append("Strengthen customer relationship and loyalty programs")

    if 0 <= nps < 30:
        weaknesses.append("Low willingness to recommend limits word of mouth")
    if 60 <= csat < 75:
        weaknesses.append("Average satisfaction makes it hard to stand out")

    if visits["new_customers"] > 70:
        weaknesses.append("Too many first-time customers; retention is weak")
    if visits["loyal_customers"] < 20:
        weaknesses.append("Few regulars, so revenue is less stable")
    if visits["new_customers"] > 60:
        opportunities.append("Large share of new customers to convert into regulars")
        recommendations.append("Build a program that turns first visits into repeat visits")
    if visits["loyal_customers"] > 30:
        strengths.append("Solid base of loyal customers")

    main = segments[0] if segments else None
    if main:
        if str(main["age_group"]).startswith("20"):
            recommendations.append("Design menu items and offers for customers in their 20s")
            opportunities.append("Younger customers respond well to social media campaigns")
        if main["avg_satisfaction"] < 70:
            priorities.append(f"Focus on satisfaction of the main segment ({main['segment']})")

    if not critical:
        if nps < 30:
            priorities.append("Differentiate the service to raise recommendations")
        priorities.append("Improve the overall customer experience")

    improvements: list[str] = []
    if weaknesses:
        improvements.append("Introduce a loyalty program to improve retention")
        improvements.append("Collect feedback regularly with short satisfaction surveys")
    if csat < 80:
        improvements.append("Standardize service training and quality checks")
    if nps < 50:
        improvements.append("Map the customer journey and fix weak touchpoints")

    leverage: list[str] = []
    if strengths:
        leverage.append("Use the service quality for premium positioning")
        leverage.append("Share satisfied customers' reviews in marketing")
    if visits["loyal_customers"] > 30:
        leverage.append("Offer VIP perks to loyal customers")
    if nps > 50:
        leverage.append("Run referral campaigns on top of strong recommendations")

    return {
        "critical_issues": critical,
        "improvement_priorities": priorities[:5],
        "strategic_recommendations": recommendations[:5],
        "strength_areas": strengths[:4],
        "weakness_areas": weaknesses[:3],
        "opportunity_areas": opportunities[:4],
        "weakness_improvements": improvements[:4],
        "strength_leverage": leverage[:4],
    }


def build_summary(
    nps: int,
    csat: int,
    loyalty_index: int,
    segments: list[dict[str, Any]],
    visits: dict[str, int],
    trends: dict[str, str],
    total_customers: int,
    responses: list,
) -> str:
    dates = sorted(_as_utc(_get(r, "created_at")) for r in responses if _get(r, "created_at"))
    date_range = (
        f"{dates[0]:%Y-%m} to {dates[-1]:%Y-%m}" if dates else "recent period"
    )
    profile = segments[0]["segment"] if segments else "mixed ages"
    if visits["new_customers"] > 60:
        pattern = "mostly new customers"
    elif visits["loyal_customers"] > 30:
        pattern = "mostly regulars"
    else:
        pattern = "balanced customer mix"

    if nps > 50:
        closing = "Customers are eager to recommend the restaurant."
    elif nps > 0:
        closing = "Satisfaction is average; willingness to recommend should improve."
    else:
        closing = "Dissatisfaction is high; the service needs immediate attention."

    return "\n".join([
        f"Analysis for {date_range}",
        f"{total_customers} customers gave {len(responses)} answers.",
        f"- Key metrics: NPS {nps} ({level(nps, 50, 0)}), CSAT {csat}% ({level(csat, 80, 60)}), "
        f"loyalty {loyalty_index}% ({level(loyalty_index, 70, 50, ('high', 'average', 'low'))})",
        f"- Main customers: {profile}",
        f"- Visit pattern: {pattern} (new {visits['new_customers']}%, loyal {visits['loyal_customers']}%)",
        f"- Satisfaction trend: {trends['satisfaction_trend']}",
        f"- Growth potential: {trends['growth_potential']}",
        "",
        closing,
    ])


def analyze(responses: list, customers: list, now: Optional[datetime] = None) -> dict[str, Any]:
    """Runs every metric and returns the full analysis payload."""
    nps = calculate_nps(responses)
    csat = calculate_csat(responses)
    loyalty = calculate_loyalty_index(responses)
    segments = analyze_customer_segments(responses, customers)
    visits = analyze_visit_frequency(responses)
    trends = analyze_trends(responses, now=now)
    insights = build_insights(nps, csat, loyalty, segments, visits)
    return {
        "nps": nps,
        "csat": csat,
        "loyalty_index": loyalty,
        "customer_segments": segments,
        "visit_frequency_analysis": visits,
        **trends,
        **insights,
    }
