# -*- coding: utf-8 -*-
#
# License: BSD3

# pylint: disable=R0904

"""
Tests for docparser.external
"""

import io
import os
import shutil
import tempfile
import unittest

from docparser.annotation import UNPARSED_HEAD
from docparser.config import Config
from docparser.external.corenlp import corenlp_properties
from docparser.external.engine import (AnnotationEngine, check_stages,
                                       parse_stages)
from docparser.external.nltk_engine import (NltkEngine, blank_markup,
                                            block_regions,
                                            missing_resources)
from docparser.external.stanford_xml_reader import read_sentences
from docparser.main import run_batch
from docparser.tsv_format import read_parsed

MINIMAL = ['tokenize', 'ssplit']

COREXML = b"""<?xml version="1.0" encoding="UTF-8"?>
<root>
  <document>
    <sentences>
      <sentence id="2">
        <tokens>
          <token id="1">
            <word>Dogs</word>
            <lemma>dog</lemma>
            <CharacterOffsetBegin>10</CharacterOffsetBegin>
            <CharacterOffsetEnd>14</CharacterOffsetEnd>
            <POS>NNS</POS>
            <NER>O</NER>
          </token>
        </tokens>
      </sentence>
      <sentence id="1">
        <tokens>
          <token id="2">
            <word>run</word>
            <lemma>run</lemma>
            <CharacterOffsetBegin>5</CharacterOffsetBegin>
            <CharacterOffsetEnd>8</CharacterOffsetEnd>
            <POS>VBP</POS>
            <NER>O</NER>
          </token>
          <token id="1">
            <word>Cats</word>
            <lemma>cat</lemma>
            <CharacterOffsetBegin>0</CharacterOffsetBegin>
            <CharacterOffsetEnd>4</CharacterOffsetEnd>
            <POS>NNS</POS>
            <NER>O</NER>
          </token>
          <token id="3">
            <word>.</word>
            <lemma>.</lemma>
            <CharacterOffsetBegin>8</CharacterOffsetBegin>
            <CharacterOffsetEnd>9</CharacterOffsetEnd>
            <POS>.</POS>
            <NER>O</NER>
          </token>
        </tokens>
        <dependencies type="basic-dependencies">
          <dep type="root">
            <governor idx="0">ROOT</governor>
            <dependent idx="2">run</dependent>
          </dep>
          <dep type="nsubj">
            <governor idx="2">run</governor>
            <dependent idx="1">Cats</dependent>
          </dep>
          <dep type="punct">
            <governor idx="2">run</governor>
            <dependent idx="3">.</dependent>
          </dep>
        </dependencies>
      </sentence>
    </sentences>
  </document>
</root>
"""


class StagesTest(unittest.TestCase):
    "annotator names"

    def test_parse_stages(self):
        self.assertEqual(['tokenize', 'ssplit', 'pos'],
                         parse_stages('pos, ssplit,tokenize'))
        self.assertRaises(ValueError, parse_stages, 'tokenize,bogus')

    def test_check_stages(self):
        self.assertEqual([], check_stages(['tokenize', 'ssplit']))
        self.assertEqual(1, len(check_stages(['tokenize', 'ssplit',
                                              'lemma'])))

    def test_too_long(self):
        engine = AnnotationEngine(MINIMAL, max_length=3)
        self.assertFalse(engine.too_long(3))
        self.assertTrue(engine.too_long(4))
        self.assertFalse(AnnotationEngine(MINIMAL).too_long(10000))


class NltkEngineTest(unittest.TestCase):
    "NLTK engine, tokenization and sentence splitting only"

    def setUp(self):
        self.engine = NltkEngine(MINIMAL)

    def test_two_sentences(self):
        text = 'Cats run. Dogs sleep.'
        sents = self.engine.annotate(text)
        self.assertEqual(['Cats run.', 'Dogs sleep.'],
                         [s.sentence for s in sents])
        self.assertEqual(['Cats', 'run', '.'], sents[0].tokens)
        self.assertEqual([10, 14, 15, 20, 20, 21], sents[1].offsets)
        for sent in sents:
            for tok, (start, end) in zip(sent.tokens, sent.spans()):
                self.assertEqual(tok, text[start:end])

    def test_unrun_stages_are_blank(self):
        sent = self.engine.annotate('Hello world.')[0]
        self.assertEqual(['', '', ''], sent.pos_tags)
        self.assertEqual([UNPARSED_HEAD] * 3, sent.dep_heads)

    def test_empty_document(self):
        self.assertEqual([], self.engine.annotate('   '))

    def test_no_resources_needed(self):
        self.assertEqual([], missing_resources(MINIMAL + ['cleanxml']))


class StubTagger:
    "tags every token X"

    def __init__(self):
        self.calls = []

    def tag(self, tokens):
        self.calls.append(list(tokens))
        return [(tok, 'X') for tok in tokens]


class MaxLengthTest(unittest.TestCase):
    "long sentences with tagging switched on"

    def setUp(self):
        self.tagger = StubTagger()
        self.engine = NltkEngine(MINIMAL + ['pos'], max_length=3,
                                 tagger=self.tagger)

    def test_long_sentence_is_only_tokenized(self):
        sents = self.engine.annotate('Cats run. Dogs sleep all day.')
        self.assertEqual(['Cats', 'run', '.'], sents[0].tokens)
        self.assertEqual(['X', 'X', 'X'], sents[0].pos_tags)
        self.assertEqual(['Dogs', 'sleep', 'all', 'day', '.'],
                         sents[1].tokens)
        self.assertEqual([''] * 5, sents[1].pos_tags)
        self.assertEqual(10, len(sents[1].offsets))
        self.assertEqual([['Cats', 'run', '.']], self.tagger.calls)

    def test_tagger_is_shared(self):
        self.engine.annotate('Cats run.')
        self.engine.annotate('Dogs run.')
        self.assertIs(self.tagger, self.engine._tagger)
        self.assertEqual(2, len(self.tagger.calls))


class CleanXmlTest(unittest.TestCase):
    "markup removal"

    def test_blank_markup(self):
        text = 'a <b>bold</b> move'
        clean = blank_markup(text)
        self.assertEqual(len(text), len(clean))
        self.assertEqual('a    bold     move', clean)

    def test_block_regions(self):
        text = '<p>Hello world</p><p>Bye now</p>'
        self.assertEqual([(3, 14), (21, 28)], block_regions(text))

    def test_block_tags_end_sentences(self):
        text = '<p>Hello world</p><p>Bye <i>now</i></p>'
        engine = NltkEngine(['tokenize', 'cleanxml', 'ssplit'])
        sents = engine.annotate(text)
        self.assertEqual([['Hello', 'world'], ['Bye', 'now']],
                         [s.tokens for s in sents])
        start, end = sents[1].spans()[1]
        self.assertEqual('now', text[start:end])


class BatchScenarioTest(unittest.TestCase):
    "end to end with the NLTK engine"

    def setUp(self):
        self.tmp_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.tmp_dir)

    def test_json_document(self):
        path = os.path.join(self.tmp_dir, 'docs.json')
        with open(path, 'w', encoding='utf-8') as stream:
            stream.write('{"id":"d1","text":"Cats run. Dogs sleep."}\n')
        config = Config(file_name=path, annotators='tokenize,ssplit')
        run_batch(config, NltkEngine(config.stages))
        frame = read_parsed(path + '.parsed')
        self.assertEqual(['d1', 'd1'], list(frame['document_id']))
        self.assertEqual([1, 2], list(frame['sentence_index']))
        self.assertEqual(['Dogs', 'sleep', '.'], frame['tokens'][1])
        self.assertFalse(os.path.exists(path + '.failed'))

    def test_tsv_document(self):
        config = Config(format_in='tsv', annotators='tokenize,ssplit')
        stdout = io.StringIO()
        run_batch(config, NltkEngine(config.stages),
                  stdin=io.StringIO('d2\tHello world.\n'), stdout=stdout)
        lines = stdout.getvalue().splitlines()
        self.assertEqual(1, len(lines))
        self.assertTrue(lines[0].startswith('d2\t1\tHello world.\t'))

    def test_empty_id(self):
        config = Config(annotators='tokenize,ssplit')
        stdout = io.StringIO()
        stats = run_batch(config, NltkEngine(config.stages),
                          stdin=io.StringIO('{"id":"","text":"Hi there."}'),
                          stdout=stdout)
        self.assertEqual('', stdout.getvalue())
        self.assertEqual(1, stats.suppressed)


class StanfordXmlTest(unittest.TestCase):
    "reading CoreNLP output"

    def test_read(self):
        text = 'Cats run. Dogs sleep.'
        sents = read_sentences(io.BytesIO(COREXML), text)
        self.assertEqual(2, len(sents))
        first = sents[0]
        self.assertEqual('Cats run.', first.sentence)
        self.assertEqual(['Cats', 'run', '.'], first.tokens)
        self.assertEqual(['cat', 'run', '.'], first.lemmas)
        self.assertEqual([0, 4, 5, 8, 8, 9], first.offsets)
        self.assertEqual(['nsubj', 'root', 'punct'], first.dep_labels)
        self.assertEqual([2, 0, 2], first.dep_heads)
        # no parse for the second sentence
        self.assertEqual([UNPARSED_HEAD], sents[1].dep_heads)
        self.assertEqual([''], sents[1].dep_labels)

    def test_without_text(self):
        sents = read_sentences(io.BytesIO(COREXML))
        self.assertEqual('Cats run .', sents[0].sentence)


class CoreNlpTest(unittest.TestCase):
    "CoreNLP setup (without running java)"

    def test_properties(self):
        props = corenlp_properties(['tokenize', 'ssplit', 'pos', 'parse'],
                                   max_length=50)
        self.assertIn('annotators = tokenize, ssplit, pos, parse', props)
        self.assertIn('parse.maxlen = 50', props)
        self.assertIn('threads = 1', props)
