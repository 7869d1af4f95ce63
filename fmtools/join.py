import copy

from fmtools.display import fmt


def join(sep, collection, spec="", move=False):  # noqa: FBT002
    """Display the items of ``collection`` with ``sep`` between each of them.

    >>> str(join("--", [1, 2, 3, 4]))
    '1--2--3--4'
    >>> str(join(",", [10, 11], spec="#x"))
    '0xa,0xb'

    The result may be rendered any number of times, so one-shot iterators
    are drained into a tuple up front.  ``move=True`` snapshots the items.
    """
    if iter(collection) is collection or move:
        collection = tuple(collection)
    if move:
        collection = copy.deepcopy(collection)

    def _join(f):
        draw = False
        for item in collection:
            if sep:
                if draw:
                    f.write_text(sep)
                draw = True
            f.write_value(item, spec)

    return fmt(_join)
