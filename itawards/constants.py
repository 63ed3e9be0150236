from enum import IntEnum

PODIUM_SIZE = 3
TOP_NOMINEES_SIZE = 10

MAX_CATEGORY_NAME_LENGTH = 100
MAX_FULL_NAME_LENGTH = 150
MAX_EMPLOYEE_CODE_LENGTH = 50

VOTING_STATUS_KEY = "voting_status"


class Place(IntEnum):
    FIRST = 1
    SECOND = 2
    THIRD = 3

    @property
    def medal(self) -> str:
        return {Place.FIRST: "🥇", Place.SECOND: "🥈", Place.THIRD: "🥉"}[self]
