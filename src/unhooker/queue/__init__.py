"""Queue, matching and commit engine.

Formal model:
    Entry eᵢ = (hookᵢ, priorityᵢ, condᵢ, payloadᵢ)
    Queue Q  = (strategy, [e₁ … eₙ], global_cond, binding)

    commit(Q)  = register(binding, perform) if binding else perform()
    perform()  = [eᵢ for eᵢ in Q if global_cond() and condᵢ() and strategy.apply(eᵢ)]
"""

from unhooker.queue.conditions import Condition, all_of, is_condition_met
from unhooker.queue.entry import CallbackTarget, ClassMethodTarget, ConstantValue, QueueEntry
from unhooker.queue.hook_queue import (
    CommitState,
    DeferredBinding,
    HookQueue,
    method_queue,
    removal_queue,
    value_queue,
)
from unhooker.queue.matching import ClassIdentityMatcher, MatchMode, matches, owner_identity
from unhooker.queue.results import QueueResult, ResultsTracker
from unhooker.queue.strategies import (
    CallbackRemover,
    ClassMethodRemover,
    ConstantValueInjector,
    OperationStrategy,
    return_false,
    return_true,
)

__all__ = [
    "Condition",
    "all_of",
    "is_condition_met",
    "CallbackTarget",
    "ClassMethodTarget",
    "ConstantValue",
    "QueueEntry",
    "CommitState",
    "DeferredBinding",
    "HookQueue",
    "removal_queue",
    "value_queue",
    "method_queue",
    "ClassIdentityMatcher",
    "MatchMode",
    "matches",
    "owner_identity",
    "QueueResult",
    "ResultsTracker",
    "OperationStrategy",
    "CallbackRemover",
    "ConstantValueInjector",
    "ClassMethodRemover",
    "return_true",
    "return_false",
]
