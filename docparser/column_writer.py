"""
Columnar output: one file per annotation type.

Given a schema (an ordered list of annotation type names), each type
gets its own append-only file `<dir>/ann.<type>` holding one JSON line
per annotated item. A type whose file already exists is left alone, so
a run can be resumed, or extended with new types, without duplicating
anything that is already on disk.
"""

# License: BSD3

import json
import os

from docparser.sink import ResourceError

DOCUMENT_SCHEMA = ('Id',
                   'Text',
                   'Sentences',
                   'Tokens',
                   'Lemmas',
                   'Pos',
                   'Ner',
                   'Offsets',
                   'DepLabels',
                   'DepHeads')
"""
Annotation types written for each document by `ColumnSink`
"""


def lower_first(name):
    "name with its first character in lowercase"
    return name[:1].lower() + name[1:]


def column_path(directory, type_name):
    "where the annotations of a given type live"
    return os.path.join(directory, 'ann.' + lower_first(type_name))


def to_json(value):
    """
    Single line JSON rendering of an annotation value (stable key
    order, so that reruns give identical files)
    """
    return json.dumps(value, ensure_ascii=False, sort_keys=True)


class _OpenColumn:
    """
    Slot for a type we are writing out
    """
    active = True

    def __init__(self, path):
        self.path = path
        try:
            self._stream = open(path, 'a', encoding='utf-8')
        except OSError as oops:
            raise ResourceError('could not open %s: %s' % (path, oops))

    def write(self, value):
        self._stream.write(to_json(value))
        self._stream.write('\n')

    def close(self):
        self._stream.close()


class _SkippedColumn:
    """
    Slot for a type whose output already exists
    """
    active = False

    def __init__(self, path):
        self.path = path

    def write(self, value):
        pass

    def close(self):
        pass


class ColumnWriter:
    """
    Fans out each annotation tuple to one file per annotation type.

    Call `set_schema` once before writing.
    """
    def __init__(self, directory):
        self.directory = directory
        self.schema = None
        self._slots = None
        self._closed = False

    def set_schema(self, schema):
        """
        Fix the annotation types for this writer, opening a file for each
        type that does not have one yet
        """
        if self._slots is not None:
            raise ValueError('schema already set for %s' % self.directory)
        self.schema = tuple(schema)
        slots = []
        try:
            for type_name in self.schema:
                path = column_path(self.directory, type_name)
                if os.path.exists(path):
                    slots.append(_SkippedColumn(path))
                else:
                    slots.append(_OpenColumn(path))
        except ResourceError:
            for slot in slots:
                slot.close()
            raise
        self._slots = slots

    def active_types(self):
        "types this writer will actually write"
        return [t for t, s in zip(self.schema, self._slots) if s.active]

    def write(self, annotations):
        """
        Append one line per active type

        Parameters
        ----------
        annotations : sequence
            One value per schema entry, in schema order
        """
        if self._slots is None:
            raise ValueError('set_schema must be called before write')
        if self._closed:
            raise ValueError('write to closed ColumnWriter')
        if len(annotations) != len(self._slots):
            raise ValueError('expected %d annotations (%s), got %d' %
                             (len(self._slots), ', '.join(self.schema),
                              len(annotations)))
        for slot, value in zip(self._slots, annotations):
            slot.write(value)

    def close(self):
        """
        Release every file we opened (safe to call more than once)
        """
        if self._closed:
            return
        self._closed = True
        for slot in self._slots or []:
            slot.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False


def document_annotations(result):
    """
    Values for `DOCUMENT_SCHEMA`, one per type, for a given document
    """
    sents = result.sentences
    return (result.document_id,
            result.text,
            [s.sentence for s in sents],
            [s.tokens for s in sents],
            [s.lemmas for s in sents],
            [s.pos_tags for s in sents],
            [s.ner_tags for s in sents],
            [s.offsets for s in sents],
            [s.dep_labels for s in sents],
            [s.dep_heads for s in sents])


class ColumnSink:
    """
    Output sink writing each parsed document through a `ColumnWriter`
    with the `DOCUMENT_SCHEMA`
    """
    def __init__(self, directory, schema=DOCUMENT_SCHEMA):
        if not os.path.isdir(directory):
            try:
                os.makedirs(directory)
            except OSError as oops:
                raise ResourceError('could not create %s: %s' %
                                    (directory, oops))
        self.writer = ColumnWriter(directory)
        self.writer.set_schema(schema)
        self._fields = [DOCUMENT_SCHEMA.index(t) for t in schema]

    def write_result(self, result):
        "one line per active annotation type"
        values = document_annotations(result)
        self.writer.write([values[i] for i in self._fields])

    def close(self):
        self.writer.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False
