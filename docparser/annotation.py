"""
Low-level representation of the documents we read and of the
annotations an engine hands back for them.

The per-sentence annotation is a bundle of parallel arrays, one slot
per token. We make no attempt to interpret the tags; we only care that
the arrays line up, since the output formats rely on it.

Character offsets follow the Python slice convention ::

      h   o   w   d   y
    0   1   2   3   4   5

and are stored flat, alternating start and end for each token, so that
`offsets[2 * i]` and `offsets[2 * i + 1]` delimit token `i` in the
*document* text.
"""

# License: BSD3

# pylint: disable=too-few-public-methods, too-many-arguments

UNPARSED_HEAD = -1
"""
Dependency head recorded for tokens the parser did not look at
(`0` is reserved for the root)
"""


class Document:
    """
    One unit of input text and its identifier.

    An empty identifier is legal; downstream it means the document
    is annotated but never written out.
    """
    def __init__(self, doc_id, text):
        self.id = doc_id
        self.text = text

    def __repr__(self):
        return 'Document(%r, %d chars)' % (self.id, len(self.text))

    def __eq__(self, other):
        return (isinstance(other, Document) and
                self.id == other.id and self.text == other.text)

    def __hash__(self):
        return hash((self.id, self.text))


class SentenceAnnotation:
    """
    Parallel per-token arrays describing one sentence.

    Attributes
    ----------
    sentence : str
        Surface text of the sentence
    tokens, lemmas, pos_tags, ner_tags, dep_labels : list of str
        One entry per token; stages that did not run leave `""`
    offsets : list of int
        Flat start/end pairs, twice as long as `tokens`
    dep_heads : list of int
        1-based head of each token within the sentence, `0` for the
        root, `UNPARSED_HEAD` if unparsed
    """
    def __init__(self, sentence, tokens, lemmas=None, pos_tags=None,
                 ner_tags=None, offsets=None, dep_labels=None,
                 dep_heads=None):
        size = len(tokens)
        self.sentence = sentence
        self.tokens = list(tokens)
        self.lemmas = _fill(lemmas, size, '')
        self.pos_tags = _fill(pos_tags, size, '')
        self.ner_tags = _fill(ner_tags, size, '')
        self.offsets = list(offsets) if offsets is not None else []
        self.dep_labels = _fill(dep_labels, size, '')
        self.dep_heads = _fill(dep_heads, size, UNPARSED_HEAD)
        self._check_alignment()

    def _check_alignment(self):
        "all arrays must have one slot per token"
        size = len(self.tokens)
        for name in ['lemmas', 'pos_tags', 'ner_tags',
                     'dep_labels', 'dep_heads']:
            if len(getattr(self, name)) != size:
                raise ValueError('%s has %d entries for %d tokens' %
                                 (name, len(getattr(self, name)), size))
        if len(self.offsets) != 2 * size:
            raise ValueError('offsets has %d entries for %d tokens '
                             '(expected start/end pairs)' %
                             (len(self.offsets), size))

    def __len__(self):
        return len(self.tokens)

    def __eq__(self, other):
        return isinstance(other, SentenceAnnotation) and\
            self.to_dict() == other.to_dict()

    def __repr__(self):
        return 'SentenceAnnotation(%r)' % self.sentence

    def spans(self):
        """
        Token offsets as a list of (start, end) pairs
        """
        return list(zip(self.offsets[0::2], self.offsets[1::2]))

    def to_dict(self):
        "plain dictionary view, eg. for JSON"
        return {'sentence': self.sentence,
                'tokens': self.tokens,
                'lemmas': self.lemmas,
                'pos_tags': self.pos_tags,
                'ner_tags': self.ner_tags,
                'offsets': self.offsets,
                'dep_labels': self.dep_labels,
                'dep_heads': self.dep_heads}


class DocumentResult:
    """
    Everything the engine had to say about a single document

    The source text is kept alongside for sinks that write it out
    """
    def __init__(self, document_id, sentences, text=None):
        self.document_id = document_id
        self.sentences = list(sentences)
        self.text = text

    def __repr__(self):
        return 'DocumentResult(%r, %d sentences)' %\
            (self.document_id, len(self.sentences))

    def to_dict(self):
        "plain dictionary view, eg. for JSON"
        return {'id': self.document_id,
                'sentences': [s.to_dict() for s in self.sentences]}


def _fill(values, size, default):
    """
    Copy of `values`, or `size` copies of the default if there are none
    """
    if values is None:
        return [default] * size
    return list(values)
