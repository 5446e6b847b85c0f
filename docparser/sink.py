"""
Where parsed documents and failure reports go

All sinks share the same little interface: `write_result(result)` and
`close()`, and can be used as context managers.
"""

# License: BSD3

import sys
import threading

from docparser.tsv_format import format_result

PARSED_SUFFIX = '.parsed'
FAILED_SUFFIX = '.failed'

BUFFER_SIZE = 1000 * 1000


class ResourceError(IOError):
    """
    An output file could not be opened or written
    """
    pass


def open_output(path, buffering=BUFFER_SIZE):
    """
    Buffered UTF-8 text file for writing, or `ResourceError`
    """
    try:
        return open(path, 'w', encoding='utf-8', buffering=buffering)
    except OSError as oops:
        raise ResourceError('could not open %s for writing: %s' %
                            (path, oops))


class _Sink:
    "context manager plumbing"

    def write_result(self, result):
        "write out all sentences of a `DocumentResult`"
        raise NotImplementedError

    def close(self):
        "flush and release"
        pass

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False


class StreamSink(_Sink):
    """
    TSV lines on an already open stream (standard output by default).
    The stream is flushed, but not closed, by `close`
    """
    def __init__(self, stream=None):
        self.stream = stream if stream is not None else sys.stdout

    def write_result(self, result):
        for line in format_result(result):
            print(line, file=self.stream)

    def close(self):
        self.stream.flush()


class FileSink(_Sink):
    """
    TSV lines in a buffered file of our own
    """
    def __init__(self, path):
        self.path = path
        self.stream = open_output(path)

    def write_result(self, result):
        try:
            for line in format_result(result):
                self.stream.write(line)
                self.stream.write('\n')
        except OSError as oops:
            raise ResourceError('could not write to %s: %s' %
                                (self.path, oops))

    def close(self):
        if not self.stream.closed:
            self.stream.flush()
            self.stream.close()


class NullSink(_Sink):
    """
    Discards everything; the caller is expected to use the
    `DocumentResult` directly (eg. to answer an HTTP request)
    """
    def write_result(self, result):
        pass


class FailureLog:
    """
    Diagnostics for documents we could not parse.

    If given a path, the file is only created when the first failure
    comes in, and every later failure is appended to it. Without a path,
    reports go to the stream (standard error by default).
    """
    def __init__(self, path=None, stream=None):
        self.path = path
        self._stream = stream
        self._owned = None
        self.count = 0
        self._lock = threading.Lock()

    def _target(self):
        "stream to write the next report to"
        if self.path is None:
            return self._stream if self._stream is not None else sys.stderr
        if self._owned is None:
            self._owned = open_output(self.path, buffering=4096)
        return self._owned

    def report(self, doc_id, message):
        """
        Record a failure for the given document

        Safe to call from several threads (the server shares one log
        between its request handlers)

        Parameters
        ----------
        doc_id : str
        message : str
            Error description (typically a formatted traceback)
        """
        entry = "Failed to parse document '%s'\n%s" % (doc_id, message)
        if not entry.endswith('\n'):
            entry += '\n'
        with self._lock:
            self.count += 1
            out = self._target()
            out.write(entry)

    @property
    def opened(self):
        "True if we have created the failure file"
        return self._owned is not None

    def close(self):
        with self._lock:
            if self._owned is not None and not self._owned.closed:
                self._owned.flush()
                self._owned.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False
