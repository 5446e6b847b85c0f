"""
What we expect from an annotation engine

An engine turns the text of one document into a list of
`SentenceAnnotation`, in document order. Anything that goes wrong with
the document as a whole should surface as an `AnnotationError`.
"""

# License: BSD3

STAGES = ['tokenize', 'cleanxml', 'ssplit', 'pos', 'lemma', 'ner', 'parse']
"""
Annotator stages, in pipeline order
"""

REQUIRED_STAGES = ['tokenize', 'ssplit']

STAGE_DEPENDENCIES = {'lemma': ['pos'],
                      'ner': ['pos'],
                      'parse': ['pos']}


class AnnotationError(Exception):
    """
    The engine could not annotate a document
    """
    def __init__(self, *args, **kw):
        super().__init__(*args, **kw)


def parse_stages(annotators):
    """
    Ordered stage names from a comma separated string, eg.
    `"tokenize, ssplit, pos"`
    """
    if isinstance(annotators, str):
        annotators = annotators.split(',')
    wanted = [x.strip() for x in annotators if x.strip()]
    unknown = [x for x in wanted if x not in STAGES]
    if unknown:
        raise ValueError('unknown annotator(s): %s (known: %s)' %
                         (', '.join(unknown), ', '.join(STAGES)))
    return [x for x in STAGES if x in wanted]


def check_stages(stages, supported=None):
    """
    Problems with a set of stages (empty list if none)
    """
    problems = []
    for req in REQUIRED_STAGES:
        if req not in stages:
            problems.append('the "%s" annotator is required' % req)
    for stage, deps in sorted(STAGE_DEPENDENCIES.items()):
        if stage in stages:
            problems.extend('"%s" needs "%s"' % (stage, d)
                            for d in deps if d not in stages)
    if supported is not None:
        problems.extend('"%s" is not supported by this engine' % x
                        for x in stages if x not in supported)
    return problems


class AnnotationEngine:
    """
    Base class for annotation engines

    Parameters
    ----------
    stages : list of str
        Annotator stages to run (see `STAGES`)
    max_length : int, optional
        Sentences with more tokens than this only get tokenized
    """
    supported_stages = STAGES

    def __init__(self, stages, max_length=None):
        self.stages = list(stages)
        self.max_length = max_length

    def wants(self, stage):
        "True if we are running the given stage"
        return stage in self.stages

    def too_long(self, num_tokens):
        "True if a sentence of this length should only be tokenized"
        return self.max_length is not None and num_tokens > self.max_length

    def annotate(self, text):
        """
        Sentence annotations for a document

        Returns
        -------
        sentences : list of SentenceAnnotation
        """
        raise NotImplementedError
