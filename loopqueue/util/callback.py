"""
Callback normalization
======================

Completion and pull callbacks come in two shapes: without arguments or taking the
queue they are registered on. The shape is resolved once when the callback is
registered, following these rules:

* a callable without positional parameters is called without arguments
* a callable with one positional parameter, optional parameters or :code:`*args`
  gets the queue passed
* a callable requiring more than one positional argument, or a keyword-only argument
  without default, is rejected
* a callable whose signature cannot be inspected is called without arguments
"""

import inspect
from enum import StrEnum
from typing import Any, Callable

from attrs import define, field, validators

from loopqueue.framework.exceptions import InvalidArgumentError

_POSITIONAL = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)


class CallbackArity(StrEnum):
    """The calling convention of a registered callback"""

    NO_ARG = "no_arg"
    """called as :code:`callback()`"""

    WITH_QUEUE = "with_queue"
    """called as :code:`callback(queue)`"""


@define(frozen=True)
class Callback:
    """A callable with its resolved calling convention"""

    function: Callable = field(validator=validators.is_callable())
    arity: CallbackArity = field(validator=validators.instance_of(CallbackArity))

    @classmethod
    def from_callable(cls, function: "Callable | Callback") -> "Callback":
        """Resolve the calling convention of :code:`function`.

        Raises
        ------
        InvalidArgumentError
            If :code:`function` is not callable or needs more than the queue as argument.
        """
        if isinstance(function, Callback):
            return function
        if not callable(function):
            raise InvalidArgumentError(f"Callback {function!r} is not callable")
        return cls(function=function, arity=resolve_arity(function))

    def __call__(self, queue: Any) -> Any:
        if self.arity is CallbackArity.NO_ARG:
            return self.function()
        return self.function(queue)


def resolve_arity(function: Callable) -> CallbackArity:
    """Return the calling convention for :code:`function`."""
    try:
        signature = inspect.signature(function)
    except (TypeError, ValueError):
        return CallbackArity.NO_ARG
    required = 0
    accepts_positional = False
    for parameter in signature.parameters.values():
        if parameter.kind in _POSITIONAL:
            accepts_positional = True
            if parameter.default is inspect.Parameter.empty:
                required += 1
        elif parameter.kind is inspect.Parameter.VAR_POSITIONAL:
            accepts_positional = True
        elif (
            parameter.kind is inspect.Parameter.KEYWORD_ONLY
            and parameter.default is inspect.Parameter.empty
        ):
            raise InvalidArgumentError(
                f"Callback {function!r} requires keyword argument '{parameter.name}'"
            )
    if required > 1:
        raise InvalidArgumentError(
            f"Callback {function!r} takes {required} positional arguments but at most 1 is passed"
        )
    return CallbackArity.WITH_QUEUE if accepts_positional else CallbackArity.NO_ARG
