import numpy as np


def distance_arrays(arr_a, arr_b):
    """
    If both inputs are array-like, return the maximum absolute difference b/w
    corresponding elements (if same shape). If they don't have the same shape,
    the arrays are not comparable and an infinite distance is returned.
    """
    if arr_a.shape != arr_b.shape:
        return np.inf
    return np.max(np.abs(arr_a - arr_b))


def distance_metric(thing_a, thing_b):
    """
    A "universal distance" metric for the objects produced by the solvers: arrays
    are compared by sup-norm, scalars by absolute difference, and MetricObjects
    through their own distance method.

    Parameters
    ----------
    thing_a : object
        A generic object.
    thing_b : object
        Another generic object.

    Returns
    -------
    distance : float
        The "distance" between thing_a and thing_b.
    """
    if isinstance(thing_a, MetricObject) and isinstance(thing_b, type(thing_a)):
        return thing_a.distance(thing_b)

    if np.ndim(thing_a) == 0 and np.ndim(thing_b) == 0:
        return float(np.abs(thing_a - thing_b))

    return distance_arrays(np.asarray(thing_a), np.asarray(thing_b))


class MetricObject:
    """
    A superclass for solution objects that can be compared across iterations of
    a fixed point.  Subclasses name the attributes that enter the comparison in
    distance_criteria.
    """

    distance_criteria = []  # This should be overwritten by subclasses.

    def distance(self, other):
        """
        The maximum distance between self and other over the attributes named in
        distance_criteria.

        Parameters
        ----------
        other : MetricObject
            Another object to compare this instance to.

        Returns
        -------
        (unnamed) : float
            The distance between this object and another.
        """
        if len(self.distance_criteria) == 0:
            raise ValueError(
                type(self).__name__ + " names no distance_criteria to compare on!"
            )
        return max(
            distance_metric(getattr(self, name), getattr(other, name))
            for name in self.distance_criteria
        )
