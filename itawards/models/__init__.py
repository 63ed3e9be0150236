from .category import Category
from .category_eligibility import CategoryEligibility
from .collaborator import Collaborator
from .nomination import Nomination
from .setting import Setting
from .voter import Voter


def register_models() -> list:
    return [Category, Collaborator, Voter, CategoryEligibility, Nomination, Setting]
