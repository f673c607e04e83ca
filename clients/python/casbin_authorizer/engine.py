"""
Default policy engine backed by pycasbin.
"""

import casbin
from casbin.model import Model


class CasbinEngine:
    """
    Builds Casbin AsyncEnforcers from model text.

    The enforcers have no adapter: policies live only in memory and are added
    by the Authorizer from the fetched payload. add_policy() and
    add_grouping_policy() are coroutines on AsyncEnforcer; enforce() is
    synchronous.
    """

    def new_model(self, model_text: str) -> Model:
        model = Model()
        model.load_model_from_text(model_text)
        return model

    def new_enforcer(self, model_text: str) -> casbin.AsyncEnforcer:
        return casbin.AsyncEnforcer(self.new_model(model_text))
