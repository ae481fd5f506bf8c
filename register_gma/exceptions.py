"""
Exception types raised by the register GMA pipeline.
"""


class RegisterGMAError(ValueError):
    """Base class for all analysis errors."""


class DataIntegrityError(RegisterGMAError):
    """
    Input tables are inconsistent: identifier mismatch, duplicate identifiers,
    non-finite values, constant feature columns or unknown category codes.
    """


class DimensionalityError(RegisterGMAError):
    """
    A requested number of dimensions exceeds its mathematical bound, or two
    bases do not share the same feature space.
    """


def describe_ids(ids, limit=5):
    """
    Format a list of offending identifiers for an error message.

    Parameters
    ----------
    ids : iterable
        Identifiers to report
    limit : int, optional
        Maximum number of identifiers spelled out

    Returns
    -------
    str
        e.g. ``"3 ids: a, b, c"`` or ``"12 ids: a, b, c, d, e, ..."``
    """
    ids = [str(i) for i in ids]
    shown = ", ".join(ids[:limit])
    if len(ids) > limit:
        shown += ", ..."
    return f"{len(ids)} ids: {shown}"
