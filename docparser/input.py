"""
Input framings: turning lines of JSON or TSV into a stream of
`Document`

Readers are lazy, one-shot iterators. A line we cannot make sense of
is reported on stderr and skipped; it never stops the stream.
"""

# License: BSD3

import json
import sys

from docparser.annotation import Document


class FramingError(Exception):
    """
    A single input line could not be split into an id and a text
    """
    def __init__(self, *args, **kw):
        super().__init__(*args, **kw)


def lookup_path(obj, path):
    """
    Follow a dotted key path (eg. `documents.text`) through nested
    JSON objects.

    Raises `KeyError` if some step of the path is missing
    """
    for key in path.split('.'):
        if not isinstance(obj, dict) or key not in obj:
            raise KeyError(path)
        obj = obj[key]
    return obj


class _LineReader:
    """
    Common machinery for readers working one line at a time.

    Subclasses implement `parse_line`, which either returns a
    `Document` or raises `FramingError`
    """
    def __init__(self, lines):
        self._lines = iter(lines)
        self._lineno = 0
        self.skipped = 0
        "number of lines we could not read"

    def __iter__(self):
        return self

    def __next__(self):
        for line in self._lines:
            self._lineno += 1
            line = line.rstrip('\r\n')
            if not line.strip():
                continue
            try:
                return self.parse_line(line)
            except FramingError as oops:
                self.skipped += 1
                print('Skipping line %d: %s' % (self._lineno, oops),
                      file=sys.stderr)
        raise StopIteration

    def parse_line(self, line):
        "(id, text) for a single line of input"
        raise NotImplementedError


class JsonReader(_LineReader):
    """
    One JSON object per line.

    A missing id gives the empty id (annotated, but not written out);
    a missing text means the line is skipped.
    """
    def __init__(self, lines, id_key='id', text_key='text'):
        super().__init__(lines)
        self.id_key = id_key
        self.text_key = text_key

    def parse_line(self, line):
        try:
            obj = json.loads(line)
        except ValueError as oops:
            raise FramingError('invalid JSON (%s)' % oops)
        if not isinstance(obj, dict):
            raise FramingError('expected a JSON object')
        try:
            text = lookup_path(obj, self.text_key)
        except KeyError:
            raise FramingError('no text under key "%s"' % self.text_key)
        if not isinstance(text, str):
            raise FramingError('text under key "%s" is not a string' %
                               self.text_key)
        try:
            doc_id = lookup_path(obj, self.id_key)
        except KeyError:
            doc_id = ''
        if doc_id is None:
            doc_id = ''
        return Document(str(doc_id), text)


class TsvReader(_LineReader):
    """
    Delimited lines, with the id and the text in given (0-based)
    columns
    """
    def __init__(self, lines, id_column=0, text_column=1, delimiter='\t'):
        super().__init__(lines)
        self.id_column = id_column
        self.text_column = text_column
        self.delimiter = delimiter

    def parse_line(self, line):
        fields = line.split(self.delimiter)
        needed = max(self.id_column, self.text_column) + 1
        if len(fields) < needed:
            raise FramingError('expected at least %d columns, got %d' %
                               (needed, len(fields)))
        return Document(fields[self.id_column], fields[self.text_column])


def read_documents(stream, config):
    """
    Reader for the input framing selected in the configuration
    """
    if config.format_in == 'json':
        return JsonReader(stream, config.id_key, config.text_key)
    return TsvReader(stream, config.id_column, config.text_column)
