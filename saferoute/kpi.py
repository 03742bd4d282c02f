# saferoute/kpi.py
data = {"searches": 0, "high_risk": 0, "failed": 0}


def bump_search(high_risk: bool):
    data["searches"] += 1
    if high_risk:
        data["high_risk"] += 1


def bump_failure():
    data["failed"] += 1


def snapshot():
    if data["searches"] == 0:
        high_risk_pct = 0
    else:
        high_risk_pct = data["high_risk"] / data["searches"]
    return {
        "searches": data["searches"],
        "failed": data["failed"],
        "high_risk_pct": round(high_risk_pct, 2),
    }


def reset():
    data.update(searches=0, high_risk=0, failed=0)
