"""Dashboard presenters"""

import abc
import sys


class PresenterBase(abc.ABC):
    """Displays the rows built by the subscription store."""

    def __init__(self, header=None):
        self.header = header

    @abc.abstractmethod
    def show(self, rows, animation_speed=0):
        """Display rows.

        :param list rows: `Row` list, sorted by position.
        :param int animation_speed: (optional, default 0)
            Transition delay (ms) of the update, 0 to display immediately.
        """
        raise NotImplementedError


class TextPresenter(PresenterBase):
    """Writes rows as aligned text lines, colors are ignored.

    :param str header: (optional, default None) Title written before rows.
    :param stream: (optional, default sys.stdout) Text stream to write to.
    """

    def __init__(self, header=None, *, stream=None):
        super().__init__(header)
        self._stream = stream if stream is not None else sys.stdout

    def format_rows(self, rows):
        """Get the text lines of rows (header excluded)."""
        if not rows:
            return []
        if len(rows) == 1 and rows[0].is_placeholder:
            return [rows[0].value]
        labels = [
            f"[{x.icon}]" if x.icon is not None else x.label for x in rows]
        width = max(len(x) for x in labels)
        lines = []
        for label, row in zip(labels, rows):
            value = row.value
            if row.suffix:
                value = f"{value} {row.suffix}"
            lines.append(f"{label:<{width}}  {value}".rstrip())
        return lines

    def show(self, rows, animation_speed=0):
        lines = self.format_rows(rows)
        if self.header:
            lines.insert(0, self.header)
        self._stream.write("\n".join(lines) + "\n")
        self._stream.flush()
