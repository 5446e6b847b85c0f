"""
Driving the annotation engine over a stream of documents.

Documents are handled strictly one after the other, in input order.
Each goes through ::

    pending -> annotating -> emitted
                          -> failed

A failure only ever affects the document that caused it: it is
recorded in the failure log and we move on to the next one.
"""

# License: BSD3

import sys
import traceback
from collections import namedtuple

from tabulate import tabulate

from docparser.annotation import DocumentResult
from docparser.sink import FailureLog


class Parsed(namedtuple('Parsed', 'result')):
    """
    Outcome of a document the engine could annotate
    """
    ok = True


class Failed(namedtuple('Failed', 'document error trace')):
    """
    Outcome of a document the engine choked on
    """
    ok = False


class RunStats:
    """
    What happened during a batch run
    """
    def __init__(self):
        self.documents = 0
        self.emitted = 0
        self.suppressed = 0
        self.failed = 0
        self.sentences = 0
        self.skipped_lines = 0

    def as_rows(self):
        "(label, count) pairs"
        return [('documents', self.documents),
                ('emitted', self.emitted),
                ('suppressed (empty id)', self.suppressed),
                ('failed', self.failed),
                ('sentences', self.sentences),
                ('skipped input lines', self.skipped_lines)]

    def __str__(self):
        return tabulate(self.as_rows(), headers=['', 'count'])


class Pipeline:
    """
    Per-document annotation with failure isolation

    Parameters
    ----------
    engine : AnnotationEngine
    sink : output sink
        Receives the result of every successfully parsed document with
        a non-empty id
    failures : FailureLog, optional
        Where to report documents we could not parse (defaults to
        standard error)
    verbose : bool, optional
        Announce each document on stderr
    """
    def __init__(self, engine, sink, failures=None, verbose=True):
        self.engine = engine
        self.sink = sink
        self.failures = failures if failures is not None else FailureLog()
        self.verbose = verbose

    def process(self, document):
        """
        Annotate a single document

        Returns
        -------
        outcome : Parsed or Failed
        """
        try:
            sentences = list(self.engine.annotate(document.text))
        except Exception as oops:  # pylint: disable=broad-except
            return Failed(document, oops, traceback.format_exc())
        return Parsed(DocumentResult(document.id, sentences,
                                     text=document.text))

    def run(self, documents, stats=None):
        """
        Annotate and write out every document in the stream

        Errors from the sink are not document failures; they propagate

        Returns
        -------
        stats : RunStats
        """
        stats = stats if stats is not None else RunStats()
        for document in documents:
            stats.documents += 1
            if self.verbose:
                print('Parsing document %s...' % document.id,
                      file=sys.stderr)
            outcome = self.process(document)
            if not outcome.ok:
                stats.failed += 1
                self.failures.report(document.id, outcome.trace)
                continue
            result = outcome.result
            if document.id == '':
                # annotated, but never written out
                stats.suppressed += 1
                continue
            self.sink.write_result(result)
            stats.emitted += 1
            stats.sentences += len(result.sentences)
        stats.skipped_lines += getattr(documents, 'skipped', 0)
        return stats
