"""
Annotations from the Stanford CoreNLP pipeline

CoreNLP is run as a java subprocess, once per document, and its XML
output read back with `docparser.external.stanford_xml_reader`.
"""

# License: BSD3

import os
import shutil
import subprocess
import tempfile

from docparser.config import ConfigurationError
from docparser.external.engine import AnnotationEngine, AnnotationError
from docparser.external.nltk_engine import SENTENCE_ENDING_TAGS
from docparser.external.stanford_xml_reader import read_sentences

PARSE_MODEL = 'edu/stanford/nlp/models/srparser/englishSR.ser.gz'


class CoreNlpWrapper:
    """Wrapper for the CoreNLP parsing system."""

    def __init__(self, corenlp_dir, memory='3g'):
        """Setup common attributes"""
        if not os.path.isdir(corenlp_dir):
            raise ConfigurationError('No CoreNLP directory %s' % corenlp_dir)
        if shutil.which('java') is None:
            raise ConfigurationError('CoreNLP needs java on the PATH')
        self.cwd = corenlp_dir
        self.memory = memory
        # CoreNLP's classpath (string version)
        jars = sorted(x for x in os.listdir(corenlp_dir)
                      if os.path.splitext(x)[1] == '.jar')
        if not jars:
            raise ConfigurationError('No jar files in %s' % corenlp_dir)
        self.cp_str = os.pathsep.join(jars)

    def command(self, txt_file, props_file, outdir):
        "java command line to run CoreNLP on a single file"
        return ['java',
                '-cp', self.cp_str,
                '-Xmx' + self.memory,
                'edu.stanford.nlp.pipeline.StanfordCoreNLP',
                '-file', txt_file,
                '-props', props_file,
                '-outputFormat', 'xml',
                '-outputDirectory', outdir]

    def process(self, text, properties):
        """Run CoreNLP on a document

        Parameters
        ----------
        text : str
            Document text
        properties : list of str
            `key=value` properties controlling CoreNLP

        Returns
        -------
        sentences : list of SentenceAnnotation
        """
        with tempfile.TemporaryDirectory(prefix='docparser-') as tmp_dir:
            txt_file = os.path.join(tmp_dir, 'document.txt')
            with open(txt_file, 'w', encoding='utf-8') as stream:
                stream.write(text)
            props_file = os.path.join(tmp_dir, 'corenlp.properties')
            with open(props_file, 'w', encoding='utf-8') as stream:
                print('\n'.join(properties), file=stream)

            proc = subprocess.run(self.command(txt_file, props_file,
                                               tmp_dir),
                                  cwd=self.cwd,
                                  stdout=subprocess.PIPE,
                                  stderr=subprocess.PIPE,
                                  universal_newlines=True)
            if proc.returncode != 0:
                tail = '\n'.join(proc.stderr.strip().splitlines()[-5:])
                raise AnnotationError('CoreNLP exited with status %d:\n%s' %
                                      (proc.returncode, tail))
            xml_file = txt_file + '.xml'
            if not os.path.exists(xml_file):
                raise AnnotationError('CoreNLP did not produce %s' % xml_file)
            return read_sentences(xml_file, text)


def corenlp_properties(stages, max_length=None):
    """
    CoreNLP properties for the given stages

    Returns
    -------
    properties : list of str
    """
    props = ['annotators = ' + ', '.join(stages),
             # parallelism is our caller's business
             'threads = 1',
             'clean.allowflawedxml = true',
             'clean.sentenceendingtags = ' + '|'.join(SENTENCE_ENDING_TAGS)]
    if max_length is not None:
        props.append('parse.maxlen = %d' % max_length)
    if 'parse' in stages:
        props.append('parse.model = ' + PARSE_MODEL)
    return props


class CoreNlpEngine(AnnotationEngine):
    """
    Engine backed by a local CoreNLP distribution
    """
    def __init__(self, corenlp_dir, stages, max_length=None):
        super().__init__(stages, max_length)
        self.wrapper = CoreNlpWrapper(corenlp_dir)

    def annotate(self, text):
        props = corenlp_properties(self.stages, self.max_length)
        try:
            return self.wrapper.process(text, props)
        except AnnotationError:
            raise
        except Exception as oops:
            raise AnnotationError('CoreNLP failed on document: %s' % oops)\
                from oops
