"""Reference data: exercise library, equipment alternatives, training splits, foods.

Loaded into the database once at startup by ``seed.py``. Rows are plain
tuples to keep the tables readable.
"""

# (name, muscle_group, primary_muscle, type, equipment_required)
EXERCISES: list[tuple[str, str, str, str, list[str]]] = [
    # Chest
    ("Flat Barbell Bench Press", "Chest", "chest_mid", "compound_heavy", ["barbell", "bench"]),
    ("Incline Barbell Press", "Chest", "chest_upper", "compound_heavy", ["barbell", "incline_bench"]),
    ("Dumbbell Bench Press", "Chest", "chest_mid", "compound_heavy", ["dumbbells", "bench"]),
    ("Incline Dumbbell Press", "Chest", "chest_upper", "compound_heavy", ["dumbbells", "incline_bench"]),
    ("Incline DB Fly", "Chest", "chest_upper", "compound_pump", ["dumbbells", "incline_bench"]),
    ("Cable Crossover", "Chest", "chest_inner", "compound_pump", ["cable"]),
    ("Weighted Dips", "Triceps", "triceps_all", "compound_pump", ["dip_station", "weight_belt"]),
    ("Machine Chest Press", "Chest", "chest_mid", "compound_pump", ["chest_press_machine"]),
    ("Pec Deck Fly", "Chest", "chest_inner", "isolation", ["pec_deck"]),
    # Shoulders
    ("DB Shoulder Press", "Shoulders", "delts_front", "compound_heavy", ["dumbbells"]),
    ("Barbell Overhead Press", "Shoulders", "delts_front", "compound_heavy", ["barbell"]),
    ("Lateral Raises", "Shoulders", "delts_side", "isolation", ["dumbbells"]),
    ("Cable Lateral Raises", "Shoulders", "delts_side", "isolation", ["cable"]),
    ("Face Pulls", "Rear Delts", "delts_rear", "isolation", ["cable"]),
    ("Rear Delt Fly", "Rear Delts", "delts_rear", "isolation", ["dumbbells"]),
    ("Machine Shoulder Press", "Shoulders", "delts_front", "compound_pump", ["shoulder_press_machine"]),
    # Back
    ("Lat Pulldown", "Back", "lats", "compound_pump", ["cable"]),
    ("Pullups", "Back", "lats", "compound_pump", ["pullup_bar"]),
    ("Seated Cable Row", "Back", "mid_back", "compound_pump", ["cable"]),
    ("Single Arm DB Row", "Back", "lats", "compound_pump", ["dumbbells", "bench"]),
    ("Barbell Row", "Back", "mid_back", "compound_heavy", ["barbell"]),
    ("Deadlift", "Back", "lower_back", "compound_heavy", ["barbell"]),
    ("T-Bar Row", "Back", "mid_back", "compound_heavy", ["t_bar", "barbell"]),
    ("Machine Row", "Back", "mid_back", "compound_pump", ["row_machine"]),
    # Arms
    ("Barbell Curl", "Biceps", "biceps", "isolation", ["barbell"]),
    ("Dumbbell Curl", "Biceps", "biceps", "isolation", ["dumbbells"]),
    ("Hammer Curl", "Biceps", "brachialis", "isolation", ["dumbbells"]),
    ("Preacher Curl", "Biceps", "biceps_short_head", "isolation", ["preacher_bench", "barbell"]),
    ("Cable Curl", "Biceps", "biceps", "isolation", ["cable"]),
    ("Tricep Pushdown", "Triceps", "triceps_lateral", "isolation", ["cable"]),
    ("Overhead Tricep Extension", "Triceps", "triceps_long_head", "isolation", ["cable"]),
    ("Skull Crushers", "Triceps", "triceps_all", "isolation", ["barbell", "bench"]),
    ("Dumbbell Tricep Extension", "Triceps", "triceps_long_head", "isolation", ["dumbbells"]),
    # Legs
    ("Barbell Squat", "Quads", "quads", "compound_heavy", ["barbell", "squat_rack"]),
    ("Leg Press", "Quads", "quads", "compound_pump", ["leg_press"]),
    ("Hack Squat", "Quads", "quads", "compound_heavy", ["hack_squat"]),
    ("Goblet Squat", "Quads", "quads", "compound_pump", ["dumbbells"]),
    ("Leg Extension", "Quads", "quads", "isolation", ["leg_extension"]),
    ("Romanian Deadlift", "Hamstrings", "hamstrings", "compound_heavy", ["barbell"]),
    ("Dumbbell RDL", "Hamstrings", "hamstrings", "compound_heavy", ["dumbbells"]),
    ("Leg Curl", "Hamstrings", "hamstrings", "isolation", ["leg_curl_machine"]),
    ("Bulgarian Split Squat", "Quads", "quads", "compound_pump", ["dumbbells", "bench"]),
    ("Walking Lunges", "Quads", "quads", "compound_pump", ["dumbbells"]),
    ("Hip Thrust", "Glutes", "glutes", "compound_heavy", ["barbell", "bench"]),
    ("Calf Raises", "Calves", "calves", "isolation", ["calf_raise_machine"]),
    ("Seated Calf Raises", "Calves", "calves_soleus", "isolation", ["seated_calf_machine"]),
    # Core
    ("Cable Crunch", "Abs", "abs", "isolation", ["cable"]),
    ("Hanging Leg Raise", "Abs", "abs_lower", "isolation", ["pullup_bar"]),
    ("Ab Wheel Rollout", "Abs", "abs", "isolation", ["ab_wheel"]),
]

# (primary, alternative, reason)
EXERCISE_ALTERNATIVES: list[tuple[str, str, str]] = [
    ("Flat Barbell Bench Press", "Dumbbell Bench Press", "no_barbell"),
    ("Incline Barbell Press", "Incline Dumbbell Press", "no_barbell"),
    ("Barbell Overhead Press", "DB Shoulder Press", "no_barbell"),
    ("Barbell Row", "Single Arm DB Row", "no_barbell"),
    ("Barbell Curl", "Dumbbell Curl", "no_barbell"),
    ("Romanian Deadlift", "Dumbbell RDL", "no_barbell"),
    ("Skull Crushers", "Dumbbell Tricep Extension", "no_barbell"),
    ("Barbell Squat", "Leg Press", "no_squat_rack"),
    ("Barbell Squat", "Hack Squat", "no_squat_rack"),
    ("Barbell Squat", "Goblet Squat", "no_squat_rack"),
    ("Lat Pulldown", "Pullups", "no_cable"),
    ("Seated Cable Row", "Single Arm DB Row", "no_cable"),
    ("Seated Cable Row", "Machine Row", "no_cable"),
    ("Cable Crossover", "Incline DB Fly", "no_cable"),
    ("Cable Crossover", "Pec Deck Fly", "no_cable"),
    ("Face Pulls", "Rear Delt Fly", "no_cable"),
    ("Tricep Pushdown", "Dumbbell Tricep Extension", "no_cable"),
    ("Overhead Tricep Extension", "Dumbbell Tricep Extension", "no_cable"),
    ("Cable Curl", "Dumbbell Curl", "no_cable"),
    ("Cable Lateral Raises", "Lateral Raises", "no_cable"),
    ("Cable Crunch", "Hanging Leg Raise", "no_cable"),
    ("Leg Press", "Bulgarian Split Squat", "home_gym"),
    ("Leg Extension", "Walking Lunges", "home_gym"),
    ("Leg Curl", "Dumbbell RDL", "home_gym"),
    ("Machine Chest Press", "Dumbbell Bench Press", "home_gym"),
    ("Machine Shoulder Press", "DB Shoulder Press", "home_gym"),
    ("Machine Row", "Single Arm DB Row", "home_gym"),
    ("Pullups", "Single Arm DB Row", "no_pullup_bar"),
]

# total_days -> [(day_index, day_name, [(exercise, sets, reps_min, reps_max)])]
TrainingDay = tuple[int, str, list[tuple[str, int, int, int]]]

TRAINING_SPLITS: dict[int, list[TrainingDay]] = {
    3: [
        (1, "Full Body A", [
            ("Barbell Squat", 4, 6, 10),
            ("Flat Barbell Bench Press", 4, 6, 10),
            ("Barbell Row", 4, 8, 12),
            ("DB Shoulder Press", 3, 8, 12),
            ("Barbell Curl", 3, 10, 15),
            ("Tricep Pushdown", 3, 10, 15),
        ]),
        (2, "Full Body B", [
            ("Deadlift", 4, 5, 8),
            ("Incline Dumbbell Press", 4, 8, 12),
            ("Lat Pulldown", 4, 8, 12),
            ("Lateral Raises", 3, 12, 20),
            ("Leg Curl", 3, 10, 15),
            ("Calf Raises", 3, 12, 20),
        ]),
        (3, "Full Body C", [
            ("Leg Press", 4, 10, 15),
            ("Dumbbell Bench Press", 4, 8, 12),
            ("Seated Cable Row", 4, 8, 12),
            ("Face Pulls", 3, 12, 20),
            ("Hammer Curl", 3, 10, 15),
            ("Overhead Tricep Extension", 3, 10, 15),
        ]),
    ],
    4: [
        (1, "Upper A", [
            ("Flat Barbell Bench Press", 4, 6, 10),
            ("Barbell Row", 4, 6, 10),
            ("DB Shoulder Press", 3, 8, 12),
            ("Lat Pulldown", 3, 8, 12),
            ("Incline DB Fly", 3, 10, 15),
            ("Barbell Curl", 3, 10, 15),
            ("Tricep Pushdown", 3, 10, 15),
        ]),
        (2, "Lower A", [
            ("Barbell Squat", 4, 6, 10),
            ("Romanian Deadlift", 4, 8, 12),
            ("Leg Press", 3, 10, 15),
            ("Leg Curl", 3, 10, 15),
            ("Calf Raises", 4, 12, 20),
            ("Cable Crunch", 3, 12, 20),
        ]),
        (3, "Upper B", [
            ("Barbell Row", 4, 6, 10),
            ("Incline Barbell Press", 4, 8, 12),
            ("Lat Pulldown", 3, 8, 12),
            ("Lateral Raises", 4, 12, 20),
            ("Face Pulls", 3, 12, 20),
            ("Hammer Curl", 3, 10, 15),
            ("Overhead Tricep Extension", 3, 10, 15),
        ]),
        (4, "Lower B", [
            ("Romanian Deadlift", 4, 6, 10),
            ("Leg Press", 4, 10, 15),
            ("Bulgarian Split Squat", 3, 8, 12),
            ("Leg Curl", 3, 10, 15),
            ("Hip Thrust", 3, 10, 15),
            ("Seated Calf Raises", 4, 12, 20),
        ]),
    ],
    5: [
        (1, "Push", [
            ("Flat Barbell Bench Press", 4, 6, 10),
            ("DB Shoulder Press", 4, 8, 12),
            ("Incline Dumbbell Press", 3, 8, 12),
            ("Lateral Raises", 4, 12, 20),
            ("Cable Crossover", 3, 10, 15),
            ("Tricep Pushdown", 3, 10, 15),
            ("Overhead Tricep Extension", 3, 10, 15),
        ]),
        (2, "Pull", [
            ("Deadlift", 4, 5, 8),
            ("Lat Pulldown", 4, 8, 12),
            ("Barbell Row", 4, 8, 12),
            ("Seated Cable Row", 3, 10, 15),
            ("Face Pulls", 3, 12, 20),
            ("Barbell Curl", 3, 10, 15),
            ("Hammer Curl", 3, 10, 15),
        ]),
        (3, "Legs", [
            ("Barbell Squat", 4, 6, 10),
            ("Romanian Deadlift", 4, 8, 12),
            ("Leg Press", 4, 10, 15),
            ("Leg Curl", 3, 10, 15),
            ("Leg Extension", 3, 12, 15),
            ("Calf Raises", 4, 12, 20),
        ]),
        (4, "Upper", [
            ("Incline Barbell Press", 4, 8, 12),
            ("Pullups", 4, 6, 12),
            ("DB Shoulder Press", 3, 8, 12),
            ("Single Arm DB Row", 3, 8, 12),
            ("Lateral Raises", 3, 12, 20),
            ("Dumbbell Curl", 3, 10, 15),
            ("Weighted Dips", 3, 8, 12),
        ]),
        (5, "Lower", [
            ("Leg Press", 4, 10, 15),
            ("Romanian Deadlift", 4, 8, 12),
            ("Bulgarian Split Squat", 3, 8, 12),
            ("Leg Curl", 3, 10, 15),
            ("Hip Thrust", 3, 10, 15),
            ("Calf Raises", 4, 12, 20),
            ("Hanging Leg Raise", 3, 10, 15),
        ]),
    ],
    6: [
        (1, "Push A", [
            ("Flat Barbell Bench Press", 4, 5, 8),
            ("Barbell Overhead Press", 4, 6, 10),
            ("Incline Dumbbell Press", 3, 8, 12),
            ("Lateral Raises", 4, 12, 20),
            ("Weighted Dips", 3, 8, 12),
            ("Tricep Pushdown", 3, 10, 15),
        ]),
        (2, "Pull A", [
            ("Deadlift", 4, 4, 6),
            ("Barbell Row", 4, 6, 10),
            ("Lat Pulldown", 4, 8, 12),
            ("Face Pulls", 3, 12, 20),
            ("Barbell Curl", 3, 8, 12),
            ("Hammer Curl", 3, 10, 15),
        ]),
        (3, "Legs A", [
            ("Barbell Squat", 4, 5, 8),
            ("Romanian Deadlift", 4, 8, 12),
            ("Leg Press", 3, 10, 15),
            ("Leg Extension", 3, 12, 15),
            ("Leg Curl", 3, 10, 15),
            ("Calf Raises", 4, 12, 20),
        ]),
        (4, "Push B", [
            ("Incline Barbell Press", 4, 8, 12),
            ("DB Shoulder Press", 4, 10, 15),
            ("Cable Crossover", 4, 12, 15),
            ("Lateral Raises", 4, 15, 20),
            ("Incline DB Fly", 3, 12, 15),
            ("Overhead Tricep Extension", 3, 12, 15),
        ]),
        (5, "Pull B", [
            ("Pullups", 4, 8, 12),
            ("Seated Cable Row", 4, 10, 15),
            ("Single Arm DB Row", 3, 10, 15),
            ("Rear Delt Fly", 4, 12, 20),
            ("Cable Curl", 3, 12, 15),
            ("Preacher Curl", 3, 10, 15),
        ]),
        (6, "Legs B", [
            ("Romanian Deadlift", 4, 8, 12),
            ("Leg Press", 4, 12, 15),
            ("Bulgarian Split Squat", 3, 10, 15),
            ("Leg Curl", 4, 12, 15),
            ("Hip Thrust", 3, 10, 15),
            ("Seated Calf Raises", 4, 15, 20),
        ]),
    ],
}

# (name, group, protein, carbs, fat) per 100 g
FOOD_ITEMS: list[tuple[str, str, float, float, float]] = [
    ("Chicken Breast", "lean_protein", 31, 0, 3.6),
    ("Ground Beef 93%", "fattier_protein", 26, 0, 7),
    ("Eggs", "fattier_protein", 13, 1, 11),
    ("Greek Yogurt", "lean_protein", 10, 4, 0.7),
    ("Salmon", "fattier_protein", 20, 0, 13),
    ("Tuna", "lean_protein", 29, 0, 1),
    ("Rice", "starchy_carb", 7, 78, 0.6),
    ("Oats", "starchy_carb", 13, 66, 7),
    ("Potatoes", "starchy_carb", 2, 17, 0.1),
    ("Sweet Potatoes", "starchy_carb", 2, 20, 0.1),
    ("Pasta", "starchy_carb", 5, 75, 1),
    ("Bread", "starchy_carb", 9, 49, 3),
    ("Banana", "starchy_carb", 1, 23, 0.3),
    ("Olive Oil", "fat_source", 0, 0, 100),
    ("Peanut Butter", "fat_source", 25, 20, 50),
    ("Almonds", "fat_source", 21, 22, 49),
    ("Avocado", "fat_source", 2, 9, 15),
]
