import os
import tempfile

import pytest

# Must be set before blueprint.settings is imported
_DB_DIR = tempfile.mkdtemp(prefix="blueprint-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["GEMINI_API_KEY"] = ""
os.environ["WORKBOOK_THINKING_BUDGET"] = "4000"


def _workbook_dict():
    return {
        "WorkbookTitle": "Run Your First 5k",
        "Introduction": "Thirty days from couch to finish line.",
        "HowToUse": "Read one page each morning.\nTick items as you go.",
        "GoalSettingSection": {
            "big_goals": "Finish a 5k without walking.",
            "milestones": "Week 1\n- Run 1k nonstop\n- Buy proper shoes\n\nWeek 2\n* Run 2k nonstop",
            "thirty_day_objectives": "- Drink water\n- Sleep 8 hours\n\nBonus tip",
        },
        "MonthlyPlanner": {
            "overview_page": "Build up slowly.",
            "habit_list_templates": "• Stretch for 10 minutes\n• Log every run",
        },
        "WeeklyPlanner": {
            "week_template": "- Plan three runs\n- Rest on Sunday",
            "habit_tracker": "Mark each run day.",
            "weekly_reflection": "What felt easier this week?",
        },
        "DailyPages": {
            "morning_prompt": "What is today's run?",
            "evening_prompt": "How did it feel?",
            "habit_checklist": "- Warm up\n\n- Run\n- Cool down",
            "motivation_quotes": ["Start slow.", "Keep going.", "You are a runner."],
        },
        "Challenges": {
            "seven_day_challenge": "- Walk 20 minutes daily",
            "twenty_one_day_challenge": "Stick with it:\n- Run every other day",
        },
        "ReviewSection": {
            "progress_summary": "Compare day 1 with day 30.",
            "reward_system": "- New running socks\n- A rest day treat",
        },
    }


@pytest.fixture
def workbook_data():
    return _workbook_dict()


@pytest.fixture
def workbook(workbook_data):
    from blueprint.workbook import WorkbookDocument

    return WorkbookDocument.model_validate(workbook_data)
