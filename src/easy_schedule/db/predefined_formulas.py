"""Predefined, age-based EASY formulas seeded into the formula store."""

PREDEFINED_FORMULAS = [
    {
        "id": "easy3",
        "min_weeks": 0,
        "max_weeks": 6,
        "label": "EASY 3",
        "description": "3-hour cycles for newborns: 4 naps plus night sleep.",
        "phases": [
            {"eat": 45, "activity": 15, "sleep": 120},
            {"eat": 45, "activity": 15, "sleep": 120},
            {"eat": 45, "activity": 15, "sleep": 120},
            {"eat": 45, "activity": 15, "sleep": 45},
            {"eat": 0, "activity": 75, "sleep": 12 * 60},
        ],
    },
    {
        "id": "easy3_5",
        "min_weeks": 6,
        "max_weeks": 8,
        "label": "EASY 3.5",
        "description": "3.5-hour cycles: 4 naps plus night sleep.",
        "phases": [
            {"eat": 45, "activity": 45, "sleep": 120},
            {"eat": 45, "activity": 45, "sleep": 120},
            {"eat": 45, "activity": 45, "sleep": 90},
            {"eat": 30, "activity": 30, "sleep": 30},
            {"eat": 0, "activity": 75, "sleep": 12 * 60},
        ],
    },
    {
        "id": "easy4",
        "min_weeks": 8,
        "max_weeks": 19,
        "label": "EASY 4",
        "description": "4-hour cycles: 2 long naps, a catnap and a bedtime routine.",
        "phases": [
            {"eat": 45, "activity": 75, "sleep": 120},
            {"eat": 45, "activity": 75, "sleep": 120},
            {"eat": 45, "activity": 75, "sleep": 30},
            {"eat": 30, "activity": 60, "sleep": 0},
        ],
    },
    {
        "id": "easy234",
        "min_weeks": 19,
        "max_weeks": 46,
        "label": "EASY 2-3-4",
        "description": "2-3-4 wake windows: 2h before nap 1, 3h before nap 2, 4h before bedtime.",
        "phases": [
            {"eat": 45, "activity": 75, "sleep": 120},
            {"eat": 45, "activity": 135, "sleep": 60},
            {"eat": 45, "activity": 135, "sleep": 0},
            {"eat": 30, "activity": 30, "sleep": 0},
        ],
    },
    {
        "id": "easy56",
        "min_weeks": 46,
        "max_weeks": None,
        "label": "EASY 5-6",
        "description": "Toddler 1-nap schedule: wake 5h, nap 1.5-2h, wake 6h to bedtime.",
        "phases": [
            {"eat": 30, "activity": 270, "sleep": 0},
            {"eat": 30, "activity": 30, "sleep": 120},
            {"eat": 30, "activity": 210, "sleep": 0},
            {"eat": 30, "activity": 60, "sleep": 0},
        ],
    },
]
