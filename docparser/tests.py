# -*- coding: utf-8 -*-
#
# License: BSD3
# pylint: disable=too-many-public-methods, invalid-name

"""
Tests for docparser
"""

import io
import json
import os
import shutil
import tempfile
import threading
import unittest

from fastapi.testclient import TestClient

from docparser.annotation import (Document, DocumentResult,
                                  SentenceAnnotation, UNPARSED_HEAD)
from docparser.column_writer import (ColumnSink, ColumnWriter,
                                     column_path, lower_first)
from docparser.config import Config, ConfigurationError
from docparser.external.engine import AnnotationEngine, AnnotationError
from docparser.input import JsonReader, TsvReader, lookup_path
from docparser.main import cli, run_batch
from docparser.pipeline import Pipeline
from docparser.server import create_app
from docparser.sink import FailureLog, FileSink, ResourceError, StreamSink
from docparser.tsv_format import (ArrayFormatError, COLUMNS,
                                  decode_array, decode_int_array,
                                  encode_array, encode_int_array,
                                  format_line, format_record,
                                  read_parsed, replace_chars)

# ---------------------------------------------------------------------
# helpers
# ---------------------------------------------------------------------


class FakeEngine(AnnotationEngine):
    """
    Sentences end with '.', tokens are separated by spaces; any
    document mentioning BOOM blows up
    """
    def __init__(self):
        super().__init__(['tokenize', 'ssplit'])
        self.seen = []

    def annotate(self, text):
        self.seen.append(text)
        if 'BOOM' in text:
            raise AnnotationError('engine exploded')
        sentences = []
        start = 0
        for chunk in text.split('.'):
            if chunk.strip():
                s_start = start + len(chunk) - len(chunk.lstrip())
                sentences.append(fake_sentence(text, s_start,
                                               start + len(chunk)))
            start += len(chunk) + 1
        return sentences


def fake_sentence(text, start, end):
    "whitespace tokenized sentence at text[start:end]"
    tokens = []
    offsets = []
    pos = start
    for tok in text[start:end].split():
        pos = text.index(tok, pos)
        tokens.append(tok)
        offsets.extend([pos, pos + len(tok)])
        pos += len(tok)
    return SentenceAnnotation(text[start:end], tokens,
                              lemmas=[t.lower() for t in tokens],
                              pos_tags=['X'] * len(tokens),
                              ner_tags=['O'] * len(tokens),
                              offsets=offsets)


def sample_sentence():
    "a fully annotated sentence"
    return SentenceAnnotation('Cats run.',
                              ['Cats', 'run', '.'],
                              lemmas=['cat', 'run', '.'],
                              pos_tags=['NNS', 'VBP', '.'],
                              ner_tags=['O', 'O', 'O'],
                              offsets=[0, 4, 5, 8, 8, 9],
                              dep_labels=['nsubj', 'root', 'punct'],
                              dep_heads=[2, 0, 2])


class TempDirTest(unittest.TestCase):
    "tests that need a scratch directory"

    def setUp(self):
        self.tmp_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.tmp_dir)

    def path(self, name):
        "file in the scratch directory"
        return os.path.join(self.tmp_dir, name)

    def slurp(self, name):
        "contents of a file in the scratch directory"
        with open(self.path(name), encoding='utf-8') as stream:
            return stream.read()

    def spit(self, name, content):
        "write a file in the scratch directory"
        with open(self.path(name), 'w', encoding='utf-8') as stream:
            stream.write(content)
        return self.path(name)


# ---------------------------------------------------------------------
# annotations
# ---------------------------------------------------------------------


class AnnotationTest(unittest.TestCase):
    "data model"

    def test_defaults_fill_missing_stages(self):
        "unrun stages are padded to the token count"
        sent = SentenceAnnotation('a b', ['a', 'b'], offsets=[0, 1, 2, 3])
        self.assertEqual(['', ''], sent.lemmas)
        self.assertEqual(['', ''], sent.dep_labels)
        self.assertEqual([UNPARSED_HEAD, UNPARSED_HEAD], sent.dep_heads)
        self.assertEqual([(0, 1), (2, 3)], sent.spans())

    def test_misaligned(self):
        "arrays must line up with the tokens"
        self.assertRaises(ValueError, SentenceAnnotation,
                          'a b', ['a', 'b'], pos_tags=['X'],
                          offsets=[0, 1, 2, 3])
        self.assertRaises(ValueError, SentenceAnnotation,
                          'a b', ['a', 'b'], offsets=[0, 1])

    def test_to_dict(self):
        result = DocumentResult('d1', [sample_sentence()])
        obj = result.to_dict()
        self.assertEqual('d1', obj['id'])
        self.assertEqual([2, 0, 2], obj['sentences'][0]['dep_heads'])


# ---------------------------------------------------------------------
# input
# ---------------------------------------------------------------------


class InputTest(unittest.TestCase):
    "JSON and TSV framings"

    def test_json_default_keys(self):
        lines = ['{"id": "d1", "text": "Cats run."}\n',
                 '{"id": 7, "text": "Dogs sleep."}\n']
        docs = list(JsonReader(lines))
        self.assertEqual([Document('d1', 'Cats run.'),
                          Document('7', 'Dogs sleep.')], docs)

    def test_json_key_path(self):
        line = '{"documents": {"id": "x", "text": "Hi."}}'
        reader = JsonReader([line], 'documents.id', 'documents.text')
        self.assertEqual([Document('x', 'Hi.')], list(reader))
        self.assertEqual(3, lookup_path({'a': {'b': 3}}, 'a.b'))
        self.assertRaises(KeyError, lookup_path, {'a': 1}, 'a.b')

    def test_json_bad_lines_are_skipped(self):
        lines = ['{"id": "d1", "text": "one"}',
                 'not json at all',
                 '[1, 2, 3]',
                 '{"id": "d2"}',
                 '',
                 '{"id": "d3", "text": "three"}']
        reader = JsonReader(lines)
        self.assertEqual(['d1', 'd3'], [d.id for d in reader])
        self.assertEqual(3, reader.skipped)

    def test_json_missing_id(self):
        "no id means the empty id"
        docs = list(JsonReader(['{"text": "anonymous"}']))
        self.assertEqual([Document('', 'anonymous')], docs)

    def test_tsv(self):
        lines = ['d2\tHello world.\n', 'short\n', 'd3\tBye.\textra\n']
        reader = TsvReader(lines)
        self.assertEqual([Document('d2', 'Hello world.'),
                          Document('d3', 'Bye.')], list(reader))
        self.assertEqual(1, reader.skipped)

    def test_tsv_columns(self):
        lines = ['text here\tignored\tid9']
        reader = TsvReader(lines, id_column=2, text_column=0)
        self.assertEqual([Document('id9', 'text here')], list(reader))


# ---------------------------------------------------------------------
# tsv records
# ---------------------------------------------------------------------


class ArrayEncodingTest(unittest.TestCase):
    "array columns must decode to what was encoded"

    def assertRoundTrip(self, items):
        "decode(encode(items)) == items"
        self.assertEqual(items, decode_array(encode_array(items)))

    def test_round_trip(self):
        self.assertRoundTrip([])
        self.assertRoundTrip([''])
        self.assertRoundTrip(['', ''])
        self.assertRoundTrip(['cats', 'and', 'dogs'])
        self.assertRoundTrip([',', '"', '\\', '{', '}', '{"a",b}'])
        self.assertRoundTrip(['tab\there', 'new\nline', 'cr\r', '\\t'])
        self.assertRoundTrip(['naïve', '日本語', ' spaced '])

    def test_empty_is_not_empty_string(self):
        self.assertEqual('{}', encode_array([]))
        self.assertEqual('{""}', encode_array(['']))

    def test_literal_format(self):
        # quote escaped in the literal, backslash escaped for COPY
        self.assertEqual(r'{"a","b\\"c"}', encode_array(['a', 'b"c']))
        self.assertEqual('{0,4,5,8}', encode_int_array([0, 4, 5, 8]))
        self.assertEqual([0, 4, 5, 8], decode_int_array('{0,4,5,8}'))

    def test_no_raw_separators(self):
        "encoded columns never contain tabs or newlines"
        col = encode_array(['a\tb', 'c\nd'])
        self.assertNotIn('\t', col)
        self.assertNotIn('\n', col)

    def test_unquoted_elements(self):
        self.assertEqual(['a', 'b'], decode_array('{a, b}'))

    def test_malformed(self):
        self.assertRaises(ArrayFormatError, decode_array, 'a,b')
        self.assertRaises(ArrayFormatError, decode_array, '{"a}')
        self.assertRaises(ArrayFormatError, decode_array, '{"a"b}')


class RecordTest(unittest.TestCase):
    "TSV rows"

    def test_replace_chars(self):
        self.assertEqual('a b c d', replace_chars('a\tb\nc\rd'))
        self.assertEqual('plain text', replace_chars('plain text'))

    def test_column_order(self):
        record = format_record('d1', 1, sample_sentence())
        self.assertEqual(len(COLUMNS), len(record))
        self.assertEqual(('d1', '1', 'Cats run.',
                          '{"Cats","run","."}',
                          '{"cat","run","."}',
                          '{"NNS","VBP","."}',
                          '{"O","O","O"}',
                          '{0,4,5,8,8,9}',
                          '{"nsubj","root","punct"}',
                          '{2,0,2}'), record)

    def test_sentence_cannot_break_rows(self):
        sent = SentenceAnnotation('two\nlines\there', ['two', 'lines'],
                                  offsets=[0, 3, 4, 9])
        line = format_line('d1', 2, sent)
        self.assertEqual(len(COLUMNS) - 1, line.count('\t'))
        self.assertNotIn('\n', line)

    def test_tsv_scenario(self):
        "TSV input in, row starting with id and index out"
        doc = next(TsvReader(['d2\tHello world.']))
        result = Pipeline(FakeEngine(), None).process(doc).result
        line = format_line(doc.id, 1, result.sentences[0])
        self.assertTrue(line.startswith('d2\t1\t'))

    def test_read_parsed(self):
        tricky = SentenceAnnotation('a\\b "c"', ['a\\b', '"c"', ''],
                                    offsets=[0, 3, 4, 7, 7, 7])
        out = io.StringIO()
        StreamSink(out).write_result(
            DocumentResult('d\t1', [sample_sentence(), tricky]))
        frame = read_parsed(io.StringIO(out.getvalue()))
        self.assertEqual(['d\t1', 'd\t1'], list(frame['document_id']))
        self.assertEqual([1, 2], list(frame['sentence_index']))
        self.assertEqual(['a\\b', '"c"', ''], frame['tokens'][1])
        self.assertEqual([0, 4, 5, 8, 8, 9], frame['offsets'][0])
        self.assertEqual('a\\b "c"', frame['sentence'][1])

    def test_read_parsed_empty(self):
        frame = read_parsed(io.StringIO(''))
        self.assertEqual(0, len(frame))


# ---------------------------------------------------------------------
# column writer
# ---------------------------------------------------------------------


class ColumnWriterTest(TempDirTest):
    "one file per annotation type"

    def test_paths(self):
        self.assertEqual('tokens', lower_first('Tokens'))
        self.assertEqual('depLabels', lower_first('DepLabels'))
        self.assertEqual(os.path.join('out', 'ann.pos'),
                         column_path('out', 'Pos'))

    def test_existing_file_is_left_alone(self):
        "a type whose file exists is never written to"
        self.spit('ann.tokens', 'from a previous run\n')
        with ColumnWriter(self.tmp_dir) as writer:
            writer.set_schema(['Tokens', 'Pos'])
            self.assertEqual(['Pos'], writer.active_types())
            writer.write([['Cats', 'run'], ['NNS', 'VBP']])
            writer.write([['Dogs'], ['NNS']])
        self.assertEqual('from a previous run\n', self.slurp('ann.tokens'))
        self.assertEqual('["NNS", "VBP"]\n["NNS"]\n', self.slurp('ann.pos'))

    def test_second_run_does_not_append(self):
        for _ in range(2):
            with ColumnWriter(self.tmp_dir) as writer:
                writer.set_schema(['Tokens'])
                writer.write([['a', 'b']])
        self.assertEqual('["a", "b"]\n', self.slurp('ann.tokens'))

    def test_reruns_are_identical(self):
        "same input, fresh directory, same bytes"
        contents = []
        for _ in range(2):
            with ColumnWriter(self.tmp_dir) as writer:
                writer.set_schema(['Tokens', 'Meta'])
                writer.write([['x'], {'b': 1, 'a': 'é'}])
            contents.append((self.slurp('ann.tokens'),
                             self.slurp('ann.meta')))
            os.remove(self.path('ann.tokens'))
            os.remove(self.path('ann.meta'))
        self.assertEqual(contents[0], contents[1])
        self.assertEqual('{"a": "é", "b": 1}\n', contents[0][1])

    def test_arity(self):
        with ColumnWriter(self.tmp_dir) as writer:
            writer.set_schema(['Tokens', 'Pos'])
            self.assertRaises(ValueError, writer.write, [['a']])

    def test_write_before_schema(self):
        writer = ColumnWriter(self.tmp_dir)
        self.assertRaises(ValueError, writer.write, [])
        writer.close()

    def test_close_twice(self):
        self.spit('ann.tokens', '')
        writer = ColumnWriter(self.tmp_dir)
        writer.set_schema(['Tokens', 'Pos'])
        writer.close()
        writer.close()
        self.assertRaises(ValueError, writer.write, [[], []])

    def test_column_sink(self):
        result = DocumentResult('d1', [sample_sentence()], text='Cats run.')
        out_dir = self.path('columns')
        with ColumnSink(out_dir) as sink:
            sink.write_result(result)
        with open(os.path.join(out_dir, 'ann.tokens'),
                  encoding='utf-8') as stream:
            self.assertEqual([['Cats', 'run', '.']], json.loads(stream.read()))
        with open(os.path.join(out_dir, 'ann.id'), encoding='utf-8') as stream:
            self.assertEqual('"d1"\n', stream.read())
        with open(os.path.join(out_dir, 'ann.depHeads'),
                  encoding='utf-8') as stream:
            self.assertEqual('[[2, 0, 2]]\n', stream.read())


# ---------------------------------------------------------------------
# pipeline
# ---------------------------------------------------------------------


class PipelineTest(TempDirTest):
    "per-document orchestration"

    def run_docs(self, docs):
        "run fake engine over docs, return engine, output lines, failures"
        engine = FakeEngine()
        out = io.StringIO()
        errs = io.StringIO()
        stats = Pipeline(engine, StreamSink(out), FailureLog(stream=errs),
                         verbose=False).run(docs)
        return engine, out.getvalue().splitlines(), errs.getvalue(), stats

    def test_one_row_per_sentence(self):
        docs = [Document('d1', 'Cats run. Dogs sleep.')]
        _, lines, _, stats = self.run_docs(docs)
        self.assertEqual(2, len(lines))
        self.assertTrue(lines[0].startswith('d1\t1\tCats run\t'))
        self.assertTrue(lines[1].startswith('d1\t2\tDogs sleep\t'))
        self.assertEqual(2, stats.sentences)

    def test_empty_id_is_annotated_not_emitted(self):
        docs = [Document('', 'Cats run. Dogs sleep.')]
        engine, lines, errs, stats = self.run_docs(docs)
        self.assertEqual([], lines)
        self.assertEqual(['Cats run. Dogs sleep.'], engine.seen)
        self.assertEqual('', errs)
        self.assertEqual(1, stats.suppressed)

    def test_failure_is_isolated(self):
        docs = [Document('a', 'One. Two.'),
                Document('b', 'BOOM goes the engine.'),
                Document('c', 'Three.')]
        _, lines, errs, stats = self.run_docs(docs)
        self.assertEqual(['a', 'a', 'c'], [x.split('\t')[0] for x in lines])
        self.assertEqual(['1', '2', '1'], [x.split('\t')[1] for x in lines])
        self.assertIn("Failed to parse document 'b'", errs)
        self.assertIn('engine exploded', errs)
        self.assertEqual(1, stats.failed)
        self.assertEqual(2, stats.emitted)

    def test_process_outcomes(self):
        pipeline = Pipeline(FakeEngine(), None)
        good = pipeline.process(Document('x', 'Fine.'))
        bad = pipeline.process(Document('y', 'BOOM.'))
        self.assertTrue(good.ok)
        self.assertEqual('x', good.result.document_id)
        self.assertFalse(bad.ok)
        self.assertIsInstance(bad.error, AnnotationError)
        self.assertIn('engine exploded', bad.trace)
        self.assertIn('Traceback', bad.trace)

    def test_failure_file_is_lazy(self):
        log = FailureLog(self.path('in.failed'))
        self.assertFalse(os.path.exists(self.path('in.failed')))
        Pipeline(FakeEngine(), StreamSink(io.StringIO()), log,
                 verbose=False).run([Document('a', 'ok.')])
        log.close()
        self.assertFalse(os.path.exists(self.path('in.failed')))

        log = FailureLog(self.path('in.failed'))
        Pipeline(FakeEngine(), StreamSink(io.StringIO()), log,
                 verbose=False).run([Document('a', 'BOOM.'),
                                     Document('b', 'BOOM again.')])
        log.close()
        content = self.slurp('in.failed')
        self.assertIn("document 'a'", content)
        self.assertIn("document 'b'", content)

    def test_concurrent_reports(self):
        out = io.StringIO()
        log = FailureLog(stream=out)

        def report_many(worker):
            for i in range(50):
                log.report('%d-%d' % (worker, i), 'bad %d-%d\n' % (worker, i))

        threads = [threading.Thread(target=report_many, args=(w,))
                   for w in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        self.assertEqual(400, log.count)
        lines = out.getvalue().splitlines()
        self.assertEqual(800, len(lines))
        for header, body in zip(lines[::2], lines[1::2]):
            key = header[len("Failed to parse document '"):-1]
            self.assertEqual('bad ' + key, body)

    def test_file_sink(self):
        with FileSink(self.path('out.parsed')) as sink:
            sink.write_result(DocumentResult('d1', [sample_sentence()]))
        lines = self.slurp('out.parsed').splitlines()
        self.assertEqual(1, len(lines))
        self.assertTrue(lines[0].startswith('d1\t1\t'))

    def test_stats_table(self):
        _, _, _, stats = self.run_docs([Document('d', 'x.')])
        self.assertIn('documents', str(stats))


# ---------------------------------------------------------------------
# driver
# ---------------------------------------------------------------------


class BatchTest(TempDirTest):
    "batch runs end to end"

    def test_file_in_file_out(self):
        infile = self.spit('docs.json',
                           '{"id": "d1", "text": "Cats run. Dogs sleep."}\n'
                           '{"id": "d2", "text": "BOOM."}\n'
                           '{"id": "", "text": "Hidden."}\n')
        config = Config(file_name=infile, annotators='tokenize,ssplit')
        stats = run_batch(config, FakeEngine())
        frame = read_parsed(self.path('docs.json.parsed'))
        self.assertEqual(['d1', 'd1'], list(frame['document_id']))
        self.assertEqual([1, 2], list(frame['sentence_index']))
        self.assertIn("document 'd2'", self.slurp('docs.json.failed'))
        self.assertEqual(3, stats.documents)

    def test_output_error_stops_the_run(self):
        infile = self.spit('docs.json',
                           '{"id": "d1", "text": "Cats run. Dogs sleep."}\n'
                           '{"id": "d2", "text": "BOOM."}\n'
                           '{"id": "d3", "text": "Never seen."}\n')
        # the failure log cannot be created
        os.mkdir(self.path('docs.json.failed'))
        config = Config(file_name=infile, annotators='tokenize,ssplit')
        engine = FakeEngine()
        with self.assertRaises(ResourceError):
            run_batch(config, engine)
        self.assertEqual(['Cats run. Dogs sleep.', 'BOOM.'], engine.seen)
        # rows written before the error were flushed when the sink closed
        frame = read_parsed(self.path('docs.json.parsed'))
        self.assertEqual(['d1', 'd1'], list(frame['document_id']))

    def test_stdin_stdout(self):
        stdin = io.StringIO('d2\tHello world.\n')
        stdout = io.StringIO()
        config = Config(format_in='tsv')
        run_batch(config, FakeEngine(), stdin=stdin, stdout=stdout)
        self.assertTrue(stdout.getvalue().startswith('d2\t1\tHello world\t'))

    def test_column_mode(self):
        stdin = io.StringIO('{"id": "d1", "text": "Cats run."}\n')
        config = Config(format_out='column', output_dir=self.path('cols'))
        run_batch(config, FakeEngine(), stdin=stdin)
        with open(self.path('cols/ann.sentences'), encoding='utf-8') as stream:
            self.assertEqual(['Cats run'], json.loads(stream.read()))

    def test_missing_input_file(self):
        with self.assertRaises(SystemExit) as cm:
            cli(['-f', self.path('nope.json'), '-a', 'tokenize,ssplit'])
        self.assertNotEqual(0, cm.exception.code)
        self.assertFalse(os.path.exists(self.path('nope.json.parsed')))


class ConfigTest(unittest.TestCase):
    "settings validation"

    def test_defaults(self):
        config = Config()
        self.assertEqual(['tokenize', 'cleanxml', 'ssplit', 'pos', 'lemma',
                          'ner'], config.stages)
        self.assertIsNone(config.parsed_path)
        self.assertEqual('x.json.failed',
                         Config(file_name='x.json').failed_path)

    def test_required_stages(self):
        config = Config(annotators='tokenize,pos')
        self.assertRaises(ConfigurationError, config.validate)

    def test_unknown_stage(self):
        config = Config(annotators='tokenize,ssplit,sentiment')
        self.assertRaises(ConfigurationError, config.validate)

    def test_unsupported_stage(self):
        config = Config(annotators='tokenize,ssplit,pos,parse')
        self.assertRaises(ConfigurationError, config.validate,
                          ['tokenize', 'ssplit', 'pos'])

    def test_column_needs_dir(self):
        config = Config(format_out='column')
        self.assertRaises(ConfigurationError, config.validate)

    def test_corenlp_needs_dir(self):
        config = Config(engine='corenlp')
        self.assertRaises(ConfigurationError, config.validate)


# ---------------------------------------------------------------------
# server
# ---------------------------------------------------------------------


class ServerTest(unittest.TestCase):
    "HTTP front end"

    def setUp(self):
        self.errs = io.StringIO()
        self.client = TestClient(create_app(FakeEngine(),
                                            FailureLog(stream=self.errs)))

    def test_parse(self):
        resp = self.client.post('/parse', json={'id': 'd1',
                                                'text': 'Cats run. Dogs.'})
        self.assertEqual(200, resp.status_code)
        body = resp.json()
        self.assertEqual('d1', body['id'])
        self.assertEqual(2, len(body['sentences']))
        self.assertEqual(['Cats', 'run'], body['sentences'][0]['tokens'])
        self.assertEqual([0, 4, 5, 8], body['sentences'][0]['offsets'])

    def test_failure(self):
        resp = self.client.post('/parse', json={'id': 'd1', 'text': 'BOOM'})
        self.assertEqual(500, resp.status_code)
        self.assertEqual('annotation_error', resp.json()['error_type'])
        self.assertIn("document 'd1'", self.errs.getvalue())

    def test_health(self):
        resp = self.client.get('/health')
        self.assertEqual({'status': 'ok'}, resp.json())
