"""
Annotation engine built out of NLTK components

* ssplit: Punkt (untrained parameters, so no model download needed)
* tokenize: Penn Treebank conventions, with character offsets
* pos: NLTK's averaged perceptron tagger
* lemma: WordNet lemmatizer, guided by the POS tag
* ner: NLTK's maximum entropy chunker, flattened to one label per token
* cleanxml: markup blanked out (offsets are kept), block level tags end
  sentences

There is no dependency parser here; use CoreNLP for the `parse` stage.
"""

# License: BSD3

import re

import nltk
from nltk.chunk import tree2conlltags
from nltk.corpus import wordnet
from nltk.stem import WordNetLemmatizer
from nltk.tag import PerceptronTagger
from nltk.tokenize import TreebankWordTokenizer
from nltk.tokenize.punkt import PunktSentenceTokenizer

from docparser.annotation import SentenceAnnotation
from docparser.config import ConfigurationError
from docparser.external.engine import AnnotationEngine, AnnotationError

SENTENCE_ENDING_TAGS = ['p', 'br', 'div', 'li', 'ul', 'ol',
                        'h1', 'h2', 'h3', 'h4', 'h5',
                        'blockquote', 'section', 'article']

_TAG = re.compile(r'<[^<>]*>')
_BLOCK_TAG = re.compile(r'<\s*/?\s*(?:%s)\b[^<>]*>' %
                        '|'.join(SENTENCE_ENDING_TAGS),
                        re.IGNORECASE)

# each inner list holds alternative names for the same resource
# (they were renamed across NLTK releases)
NLTK_RESOURCES = {
    'pos': [['taggers/averaged_perceptron_tagger_eng',
             'taggers/averaged_perceptron_tagger']],
    'lemma': [['corpora/wordnet', 'corpora/wordnet.zip']],
    'ner': [['chunkers/maxent_ne_chunker_tab',
             'chunkers/maxent_ne_chunker'],
            ['corpora/words', 'corpora/words.zip']],
}


def _has_resource(names):
    "True if any of the alternative resource names can be found"
    for name in names:
        try:
            nltk.data.find(name)
            return True
        except LookupError:
            continue
    return False


def missing_resources(stages):
    """
    NLTK data packages the given stages need but which are not installed
    """
    missing = []
    for stage in stages:
        for names in NLTK_RESOURCES.get(stage, []):
            if not _has_resource(names):
                missing.append(names[0])
    return missing


def blank_markup(text):
    """
    Text with every tag replaced by as many spaces, so that
    offsets into the result are offsets into the original
    """
    return _TAG.sub(lambda m: ' ' * len(m.group(0)), text)


def block_regions(text):
    """
    (start, end) regions of the text between sentence ending tags
    """
    regions = []
    last = 0
    for match in _BLOCK_TAG.finditer(text):
        if match.start() > last:
            regions.append((last, match.start()))
        last = match.end()
    if last < len(text):
        regions.append((last, len(text)))
    return regions


def wordnet_pos(tag):
    """
    WordNet part of speech for a Penn Treebank tag (nouns by default)
    """
    if tag.startswith('J'):
        return wordnet.ADJ
    elif tag.startswith('V'):
        return wordnet.VERB
    elif tag.startswith('R'):
        return wordnet.ADV
    else:
        return wordnet.NOUN


class NltkEngine(AnnotationEngine):
    """
    Engine running NLTK tools in-process
    """
    supported_stages = ['tokenize', 'cleanxml', 'ssplit',
                        'pos', 'lemma', 'ner']

    def __init__(self, stages, max_length=None, tagger=None):
        """
        Parameters
        ----------
        stages : list of str
        max_length : int, optional
            Longer sentences are only tokenized
        tagger : object with a `tag(tokens)` method, optional
            POS tagger to use instead of NLTK's averaged perceptron
        """
        super().__init__(stages, max_length)
        needed = [x for x in self.stages
                  if not (x == 'pos' and tagger is not None)]
        missing = missing_resources(needed)
        if missing:
            raise ConfigurationError(
                'missing NLTK data: %s (install with nltk.download)' %
                ', '.join(missing))
        self._sentences = PunktSentenceTokenizer()
        self._words = TreebankWordTokenizer()
        self._lemmatizer = WordNetLemmatizer()
        # everything is loaded up front: the server shares one engine
        # between its request threads, and lazy loading is not
        # thread safe
        if tagger is None and self.wants('pos'):
            tagger = PerceptronTagger()
        self._tagger = tagger
        if self.wants('lemma'):
            wordnet.ensure_loaded()

    def annotate(self, text):
        try:
            return list(self._annotate(text))
        except AnnotationError:
            raise
        except Exception as oops:
            raise AnnotationError('NLTK failed on document: %s' % oops)\
                from oops

    def _annotate(self, text):
        "generate sentence annotations"
        if self.wants('cleanxml'):
            regions = block_regions(text)
            text = blank_markup(text)
        else:
            regions = [(0, len(text))]
        for r_start, r_end in regions:
            region = text[r_start:r_end]
            for s_start, s_end in self._sentences.span_tokenize(region):
                sentence = self._sentence(text, r_start + s_start,
                                          r_start + s_end)
                if sentence is not None:
                    yield sentence

    def _sentence(self, text, start, end):
        """
        Annotations for the sentence at `text[start:end]` (None if
        there are no tokens in it)
        """
        sent_text = text[start:end]
        spans = [(start + s, start + e)
                 for s, e in self._words.span_tokenize(sent_text)]
        if not spans:
            return None
        tokens = [text[s:e] for s, e in spans]
        offsets = [x for span in spans for x in span]
        if self.too_long(len(tokens)) or not self.wants('pos'):
            return SentenceAnnotation(sent_text, tokens, offsets=offsets)

        tags = [tag for _, tag in self._tagger.tag(tokens)]
        lemmas = None
        ner_tags = None
        if self.wants('lemma'):
            lemmas = [self._lemma(tok, tag) for tok, tag in zip(tokens, tags)]
        if self.wants('ner'):
            tree = nltk.ne_chunk(list(zip(tokens, tags)))
            ner_tags = [iob[2:] if iob != 'O' else 'O'
                        for _, _, iob in tree2conlltags(tree)]
        return SentenceAnnotation(sent_text, tokens,
                                  lemmas=lemmas,
                                  pos_tags=tags,
                                  ner_tags=ner_tags,
                                  offsets=offsets)

    def _lemma(self, token, tag):
        "WordNet lemma (proper nouns are left as they are)"
        if tag.startswith('NNP'):
            return token
        return self._lemmatizer.lemmatize(token.lower(), wordnet_pos(tag))
