#########################################################################################
##
##                              UPDATE / REMAKE ENGINE
##                                   (update.py)
##
##         Applies sparse parameter changes to a live problem through a setter
##         cache, either in place or on an independent clone, and the full
##         rebuild path used when no cache is available.
##
#########################################################################################

# IMPORTS ===============================================================================

import logging

from .binding import as_lookup
from .problem import build_problem, clone


__all__ = [
    "update",
    "remake",
    "rebuild",
]


logger = logging.getLogger(__name__)


# FAST PATH =============================================================================

def update(problem, cache, bindings):
    """Apply *bindings* to *problem* in place through *cache*.

    Only slots that are both in the cache and in the bindings are written;
    every other slot keeps its current value (no defaults are re-applied).
    Setters run in cache order, so if two entries target the same slot the
    later one wins.

    Parameters
    ----------
    problem : Problem
        Problem to mutate.
    cache : SetterCache
        Cache built with :func:`~paramtree.cache.build_cache`.
    bindings : object
        Anything accepted by :func:`~paramtree.binding.as_lookup`, typically
        a ``(system, tree)`` pair.

    Returns
    -------
    Problem
        The same *problem*, mutated.

    Raises
    ------
    UnresolvedSlotError, StaleInstanceShapeError
        The cache does not fit *problem*; nothing has been written.
    """
    lookup = as_lookup(bindings)
    cache.check(problem)

    n_set = 0
    for slot, setter in cache:
        if slot in lookup:
            setter(problem, lookup[slot])
            n_set += 1

    logger.debug("update wrote %d of %d cached slots", n_set, len(cache))
    return problem


def remake(problem, cache, bindings):
    """Return an updated, independent copy of *problem*.

    With a cache this is :func:`~paramtree.problem.clone` followed by
    :func:`update` on the clone; *problem* itself is never modified. With
    ``cache=None`` the copy is rebuilt from scratch: the problem's current
    values overlaid with every binding.

    Parameters
    ----------
    problem : Problem
        Source problem, left untouched.
    cache : SetterCache or None
        Setter cache, or ``None`` for the full-rebuild path.
    bindings : object
        Anything accepted by :func:`~paramtree.binding.as_lookup`.

    Returns
    -------
    Problem
    """
    if cache is None:
        base = problem.ps.to_dict()
        base.update(as_lookup(bindings))
        return rebuild(problem.system, base, tspan=problem.tspan)

    cache.check(problem)
    return update(clone(problem), cache, bindings)


# FULL PATH =============================================================================

def rebuild(system, bindings, **kwargs):
    """Build a brand-new problem from the full bindings (declared defaults elsewhere).

    Always correct, cost proportional to the number of declared parameters.
    Keyword arguments are forwarded to :func:`~paramtree.problem.build_problem`.
    """
    return build_problem(system, bindings, **kwargs)
