from enum import Enum


AUTO_SUBMIT_JOB_PREFIX = "auto_submit_"
AUTO_SUBMIT_SWEEP_JOB_ID = "auto_submit_sweep"

class AttemptStatusEnum(str, Enum):
    STARTED = "STARTED"
    COMPLETED = "COMPLETED"

class AttemptQuestionStatusEnum(str, Enum):
    UNATTEMPTED = "UNATTEMPTED"
    ATTEMPTED = "ATTEMPTED"
    SKIPPED = "SKIPPED"

class PurchaseItemTypeEnum(str, Enum):
    EXAM_PLAN = "EXAM_PLAN"
    TEST_SERIES = "TEST_SERIES"

class PurchaseStatusEnum(str, Enum):
    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"
    CANCELLED = "CANCELLED"
