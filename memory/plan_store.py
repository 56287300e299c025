"""
NutriFlow — Plan Store
======================
One JSON document per saved plan: <plan_dir>/plan_<YYYY-MM-DD>.json
  {"date", "profile", "targets", "meals"}
"""

import json
import os
from datetime import date
from typing import Any, Dict, Optional, Sequence

from tools.meal_parser import Meal
from tools.settings import NUTRIFLOW_CONFIG
from tools.target_calculator import Profile, Targets


def plan_filename(plan_date: date, directory: str) -> str:
    return os.path.join(directory, f"plan_{plan_date.isoformat()}.json")


def save_plan(
    meals: Sequence[Meal],
    profile: Profile,
    targets: Targets,
    directory: Optional[str] = None,
    plan_date: Optional[date] = None,
) -> Dict[str, Any]:
    """
    Write a plan to disk. A second save on the same day overwrites the first.

    Returns:
        {"status": "success", "path": ...} or {"status": "error", "error_message": ...}
    """
    directory = directory or NUTRIFLOW_CONFIG["plan_dir"]
    plan_date = plan_date or date.today()

    data = {
        "date": plan_date.isoformat(),
        "profile": profile.model_dump(),
        "targets": targets.model_dump(),
        "meals": [meal.model_dump() for meal in meals],
    }

    try:
        os.makedirs(directory, exist_ok=True)
        path = plan_filename(plan_date, directory)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
    except (OSError, TypeError, ValueError) as e:
        return {"status": "error", "error_message": f"Save failed: {e}"}

    return {"status": "success", "path": path}


def load_plan(path: str) -> Dict[str, Any]:
    """Read a saved plan back as a dict."""
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


__all__ = ["save_plan", "load_plan", "plan_filename"]
