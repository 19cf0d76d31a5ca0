"""An in-memory B-tree keyed by an ordering on its items."""

from __future__ import annotations

from typing import Any, Callable, Generic, Iterator, Optional, TypeVar

T = TypeVar("T")

DEFAULT_SIZE = 512

# Node sizing follows a byte budget: a 4-byte header, pointer-sized child
# links and fixed-width key slots.
_HEADER_SIZE = 4
_PTR_SIZE = 8
_KEY_SIZE = 8

_MISSING = object()


class _Node:
    __slots__ = ("keys", "children")

    def __init__(self, internal: bool) -> None:
        self.keys: list = []
        self.children: Optional[list] = [] if internal else None

    @property
    def is_internal(self) -> bool:
        return self.children is not None


class BTree(Generic[T]):
    """A B-tree holding items in sorted order; equal items may coexist."""

    def __init__(self, size: int = DEFAULT_SIZE, key: Optional[Callable[[T], Any]] = None) -> None:
        t = ((size - _HEADER_SIZE - _PTR_SIZE) // (_PTR_SIZE + _KEY_SIZE) + 1) >> 1
        if t < 2:
            raise ValueError(f"node size {size} is too small for a B-tree")
        self.t = t
        self._key = key if key is not None else (lambda item: item)
        self._root = _Node(internal=False)
        self._n_keys = 0

    def _cmp(self, a: T, b: T) -> int:
        ka, kb = self._key(a), self._key(b)
        return (kb < ka) - (ka < kb)

    def _search(self, node: _Node, item: T) -> tuple[int, int]:
        """Index of the last key not greater than item, and the comparison there."""
        keys = node.keys
        n = len(keys)
        if n == 0:
            return -1, 1
        begin, end = 0, n
        while begin < end:
            mid = (begin + end) >> 1
            if self._cmp(keys[mid], item) < 0:
                begin = mid + 1
            else:
                end = mid
        if begin == n:
            return n - 1, 1
        r = self._cmp(item, keys[begin])
        if r < 0:
            begin -= 1
        return begin, r

    def __len__(self) -> int:
        return self._n_keys

    def __iter__(self) -> Iterator[T]:
        yield from self._walk(self._root)

    def _walk(self, node: _Node) -> Iterator[T]:
        if not node.is_internal:
            yield from node.keys
            return
        for i, item in enumerate(node.keys):
            yield from self._walk(node.children[i])
            yield item
        yield from self._walk(node.children[len(node.keys)])

    def _locate(self, item: T) -> Any:
        node: Optional[_Node] = self._root
        while node is not None:
            i, r = self._search(node, item)
            if i >= 0 and r == 0:
                return node.keys[i]
            if not node.is_internal:
                return _MISSING
            node = node.children[i + 1]
        return _MISSING

    def get(self, item: T) -> Optional[T]:
        """Return the stored item equal to ``item``, or None."""
        found = self._locate(item)
        return None if found is _MISSING else found

    def __contains__(self, item: T) -> bool:
        return self._locate(item) is not _MISSING

    def interval(self, item: T) -> tuple[Optional[T], Optional[T]]:
        """Return the nearest stored items at or below and at or above ``item``."""
        lower = upper = None
        node: Optional[_Node] = self._root
        while node is not None:
            i, r = self._search(node, item)
            if i >= 0 and r == 0:
                return node.keys[i], node.keys[i]
            if i >= 0:
                lower = node.keys[i]
            if i < len(node.keys) - 1:
                upper = node.keys[i + 1]
            if not node.is_internal:
                break
            node = node.children[i + 1]
        return lower, upper

    def first(self) -> T:
        """Return the smallest item."""
        if self._n_keys == 0:
            raise KeyError("first() on an empty tree")
        node = self._root
        while node.is_internal:
            node = node.children[0]
        return node.keys[0]

    def _split(self, x: _Node, i: int, y: _Node) -> None:
        t = self.t
        z = _Node(internal=y.is_internal)
        z.keys = y.keys[t:]
        if y.is_internal:
            z.children = y.children[t:]
            y.children = y.children[:t]
        median = y.keys[t - 1]
        y.keys = y.keys[: t - 1]
        x.children.insert(i + 1, z)
        x.keys.insert(i, median)

    def _put(self, x: _Node, item: T) -> None:
        while x.is_internal:
            i = self._search(x, item)[0] + 1
            if len(x.children[i].keys) == 2 * self.t - 1:
                self._split(x, i, x.children[i])
                if self._cmp(item, x.keys[i]) > 0:
                    i += 1
            x = x.children[i]
        i = self._search(x, item)[0]
        x.keys.insert(i + 1, item)

    def put(self, item: T) -> None:
        """Insert ``item``; equal items are kept side by side."""
        self._n_keys += 1
        r = self._root
        if len(r.keys) == 2 * self.t - 1:
            s = _Node(internal=True)
            s.children.append(r)
            self._root = s
            self._split(s, 0, r)
            r = s
        self._put(r, item)

    def _delete(self, x: _Node, item: Any, s: int) -> T:
        t = self.t
        if s:
            r = 0 if not x.is_internal else (1 if s == 1 else -1)
            i = len(x.keys) - 1 if s == 1 else -1
        else:
            i, r = self._search(x, item)
        if not x.is_internal:
            if s == 2:
                i += 1
            return x.keys.pop(i)
        if r == 0:
            y = x.children[i]
            z = x.children[i + 1]
            if len(y.keys) >= t:
                kp = x.keys[i]
                x.keys[i] = self._delete(y, None, 1)
                return kp
            if len(z.keys) >= t:
                kp = x.keys[i]
                x.keys[i] = self._delete(z, None, 2)
                return kp
            if len(y.keys) == t - 1 and len(z.keys) == t - 1:
                y.keys.append(x.keys[i])
                y.keys.extend(z.keys)
                if y.is_internal:
                    y.children.extend(z.children)
                del x.keys[i]
                del x.children[i + 1]
                return self._delete(y, item, s)
        i += 1
        n = len(x.keys)
        xp = x.children[i]
        if len(xp.keys) == t - 1:
            left = x.children[i - 1] if i > 0 else None
            right = x.children[i + 1] if i < n else None
            if left is not None and len(left.keys) >= t:
                xp.keys.insert(0, x.keys[i - 1])
                x.keys[i - 1] = left.keys.pop()
                if xp.is_internal:
                    xp.children.insert(0, left.children.pop())
            elif right is not None and len(right.keys) >= t:
                xp.keys.append(x.keys[i])
                x.keys[i] = right.keys.pop(0)
                if xp.is_internal:
                    xp.children.append(right.children.pop(0))
            elif left is not None and len(left.keys) == t - 1:
                left.keys.append(x.keys[i - 1])
                left.keys.extend(xp.keys)
                if left.is_internal:
                    left.children.extend(xp.children)
                del x.keys[i - 1]
                del x.children[i]
                xp = left
            elif right is not None and len(right.keys) == t - 1:
                xp.keys.append(x.keys[i])
                xp.keys.extend(right.keys)
                if xp.is_internal:
                    xp.children.extend(right.children)
                del x.keys[i]
                del x.children[i + 1]
        return self._delete(xp, item, s)

    def delete(self, item: T) -> T:
        """Remove one item equal to ``item`` and return it."""
        if self._locate(item) is _MISSING:
            raise KeyError(item)
        ret = self._delete(self._root, item, 0)
        self._n_keys -= 1
        root = self._root
        if root.is_internal and not root.keys:
            self._root = root.children[0]
        return ret