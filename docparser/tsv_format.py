"""
Wide TSV records: one line per sentence.

Columns, in order ::

    document_id  sentence_index  sentence  tokens  lemmas  pos_tags
    ner_tags  offsets  dep_labels  dep_heads

The file is meant to be loaded with PostgreSQL's `COPY FROM` (text
format), so each column is escaped for that framing, and the array
columns hold array literals ::

    {"The","\\"quoted\\"","cat"}    string arrays, always double quoted
    {0,3,4,12}                    integer arrays

Decoding a column with `decode_array` gives back exactly the sequence
that was encoded, empty strings included.
"""

# License: BSD3

import csv
import re

import pandas as pd

COLUMNS = ['document_id',
           'sentence_index',
           'sentence',
           'tokens',
           'lemmas',
           'pos_tags',
           'ner_tags',
           'offsets',
           'dep_labels',
           'dep_heads']

STRING_ARRAY_COLUMNS = ['tokens', 'lemmas', 'pos_tags', 'ner_tags',
                        'dep_labels']
INT_ARRAY_COLUMNS = ['offsets', 'dep_heads']

_CONTROL_CHARS = re.compile('[\x00-\x1f\x7f\x85\u2028\u2029]')

_COPY_ESCAPES = {'t': '\t', 'n': '\n', 'r': '\r'}


class ArrayFormatError(ValueError):
    """
    Column that does not hold a well formed array literal
    """
    pass


# ---------------------------------------------------------------------
# escaping
# ---------------------------------------------------------------------


def replace_chars(text):
    """
    Replace tabs, newlines and other control characters with a space
    each, so that the text can sit in one TSV column
    """
    return _CONTROL_CHARS.sub(' ', text)


def copy_escape(column):
    """
    Escape a column for the COPY text format
    """
    # backslash first
    return column.replace('\\', '\\\\')\
        .replace('\t', '\\t')\
        .replace('\n', '\\n')\
        .replace('\r', '\\r')


def copy_unescape(column):
    """
    Inverse of `copy_escape`
    """
    if '\\' not in column:
        return column
    res = []
    chars = iter(column)
    for char in chars:
        if char == '\\':
            nxt = next(chars, '\\')
            res.append(_COPY_ESCAPES.get(nxt, nxt))
        else:
            res.append(char)
    return ''.join(res)


# ---------------------------------------------------------------------
# arrays
# ---------------------------------------------------------------------


def _quote(item):
    "array element, double quoted"
    return '"' + item.replace('\\', '\\\\').replace('"', '\\"') + '"'


def array_literal(items):
    """
    PostgreSQL array literal for a sequence of strings
    """
    return '{' + ','.join(_quote(x) for x in items) + '}'


def int_array_literal(items):
    """
    PostgreSQL array literal for a sequence of integers
    """
    return '{' + ','.join(str(int(x)) for x in items) + '}'


def encode_array(items):
    "TSV column for a sequence of strings"
    return copy_escape(array_literal(items))


def encode_int_array(items):
    "TSV column for a sequence of integers"
    return copy_escape(int_array_literal(items))


def parse_array_literal(literal):
    """
    Elements of a (one-dimensional) array literal, as strings.

    Quoted elements are unescaped; unquoted ones are taken verbatim
    (minus surrounding whitespace).
    """
    if len(literal) < 2 or literal[0] != '{' or literal[-1] != '}':
        raise ArrayFormatError('not an array literal: %r' % literal)
    inner = literal[1:-1]
    items = []
    if not inner:
        return items
    i = 0
    size = len(inner)
    while True:
        if i < size and inner[i] == '"':
            i += 1
            buf = []
            while True:
                if i >= size:
                    raise ArrayFormatError('unterminated quote in %r' %
                                           literal)
                char = inner[i]
                if char == '\\' and i + 1 < size:
                    buf.append(inner[i + 1])
                    i += 2
                elif char == '"':
                    i += 1
                    break
                else:
                    buf.append(char)
                    i += 1
            items.append(''.join(buf))
        else:
            end = inner.find(',', i)
            if end < 0:
                end = size
            items.append(inner[i:end].strip())
            i = end
        if i >= size:
            break
        if inner[i] != ',':
            raise ArrayFormatError('expected "," at position %d in %r' %
                                   (i + 1, literal))
        i += 1
    return items


def decode_array(column):
    "sequence of strings from a TSV column (see `encode_array`)"
    return parse_array_literal(copy_unescape(column))


def decode_int_array(column):
    "sequence of integers from a TSV column (see `encode_int_array`)"
    return [int(x) for x in decode_array(column)]


# ---------------------------------------------------------------------
# records
# ---------------------------------------------------------------------


def format_record(document_id, sentence_index, annotation):
    """
    Columns for one sentence

    Parameters
    ----------
    document_id : str
    sentence_index : int
        1-based position of the sentence in the document
    annotation : SentenceAnnotation

    Returns
    -------
    record : tuple of str
        One entry per `COLUMNS`
    """
    return (copy_escape(document_id),
            str(sentence_index),
            copy_escape(replace_chars(annotation.sentence)),
            encode_array(annotation.tokens),
            encode_array(annotation.lemmas),
            encode_array(annotation.pos_tags),
            encode_array(annotation.ner_tags),
            encode_int_array(annotation.offsets),
            encode_array(annotation.dep_labels),
            encode_int_array(annotation.dep_heads))


def format_line(document_id, sentence_index, annotation):
    "tab separated `format_record`, without line terminator"
    return '\t'.join(format_record(document_id, sentence_index, annotation))


def format_result(result):
    """
    Lines for every sentence of a `DocumentResult`, in order
    """
    for idx, sentence in enumerate(result.sentences, start=1):
        yield format_line(result.document_id, idx, sentence)


def read_parsed(path_or_buffer):
    """
    Load parser output back into a DataFrame, with the array columns
    decoded into lists
    """
    try:
        frame = pd.read_csv(path_or_buffer,
                            sep='\t',
                            header=None,
                            names=COLUMNS,
                            quoting=csv.QUOTE_NONE,
                            dtype=str,
                            keep_default_na=False,
                            na_filter=False)
    except pd.errors.EmptyDataError:
        return pd.DataFrame(columns=COLUMNS)
    frame['document_id'] = frame['document_id'].map(copy_unescape)
    frame['sentence_index'] = frame['sentence_index'].astype(int)
    frame['sentence'] = frame['sentence'].map(copy_unescape)
    for col in STRING_ARRAY_COLUMNS:
        frame[col] = frame[col].map(decode_array)
    for col in INT_ARRAY_COLUMNS:
        frame[col] = frame[col].map(decode_int_array)
    return frame
