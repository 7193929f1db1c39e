"""Column names and condition labels shared by the simulator, fitter and pilot loader."""

SUBJECT_COLUMN = "subj_id"
ITEM_COLUMN = "item_id"
CONDITION_COLUMN = "distractor"
EFFECT_CODE_COLUMN = "distractor_ec"
OUTCOME_COLUMN = "rt"

PRESENT_LABEL = "present"
ABSENT_LABEL = "absent"

# Absent is the reference level; the fitted slope is present - absent.
EFFECT_CODES = {ABSENT_LABEL: -0.5, PRESENT_LABEL: 0.5}
