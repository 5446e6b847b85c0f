"""
Reader for Stanford CoreNLP XML output

Example of output:

.. code-block:: xml

  <document>
    <sentences>
      <sentence id="1">
        <tokens>
        <token id="1">
        <word>Cats</word>
        <lemma>cat</lemma>
        <CharacterOffsetBegin>0</CharacterOffsetBegin>
        <CharacterOffsetEnd>4</CharacterOffsetEnd>
        <POS>NNS</POS>
        <NER>O</NER>
        </token>
        ...
        </tokens>
        <dependencies type="basic-dependencies">
          <dep type="root">
            <governor idx="0">ROOT</governor>
            <dependent idx="2">run</dependent>
          </dep>
          ...
        </dependencies>
      </sentence>
    </sentences>
  </document>

Older CoreNLP releases write `<basic-dependencies>` instead of
`<dependencies type="basic-dependencies">`; we accept both.

Unlike the offsets in some other CoreNLP outputs, those in the XML are
end exclusive, which is also our convention.
"""

# License: BSD3

import xml.etree.ElementTree as ET

from docparser.annotation import SentenceAnnotation, UNPARSED_HEAD

DEPENDENCY_TYPE = 'basic-dependencies'


def _text_of(elt, name):
    "text of a child element, or the empty string if there is none"
    child = elt.find(name)
    if child is None or child.text is None:
        return ''
    return child.text


def _dependency_elements(s_elt):
    "`dep` elements of the basic dependencies (None if unparsed)"
    deps = s_elt.find(".//dependencies[@type='%s']" % DEPENDENCY_TYPE)
    if deps is None:
        deps = s_elt.find('.//' + DEPENDENCY_TYPE)
    if deps is None:
        return None
    return deps.findall('dep')


def read_sentence(s_elt, text=None):
    """
    `SentenceAnnotation` for a `<sentence>` element

    Parameters
    ----------
    s_elt : Element
    text : str, optional
        Document text the offsets refer to; if given the sentence text
        is cut out of it, otherwise the words are joined with spaces
    """
    t_elts = sorted(s_elt.findall('.//tokens/token'),
                    key=lambda t: int(t.get('id')))
    words = []
    lemmas = []
    tags = []
    ners = []
    offsets = []
    for t_elt in t_elts:
        words.append(_text_of(t_elt, 'word'))
        lemmas.append(_text_of(t_elt, 'lemma'))
        tags.append(_text_of(t_elt, 'POS'))
        ners.append(_text_of(t_elt, 'NER'))
        offsets.append(int(_text_of(t_elt, 'CharacterOffsetBegin')))
        offsets.append(int(_text_of(t_elt, 'CharacterOffsetEnd')))

    labels = None
    heads = None
    dep_elts = _dependency_elements(s_elt)
    if dep_elts is not None:
        labels = [''] * len(words)
        heads = [UNPARSED_HEAD] * len(words)
        for d_elt in dep_elts:
            dep_idx = int(d_elt.find('dependent').get('idx'))
            gov_idx = int(d_elt.find('governor').get('idx'))
            if 0 < dep_idx <= len(words):
                labels[dep_idx - 1] = d_elt.get('type')
                heads[dep_idx - 1] = gov_idx

    if text is not None and offsets:
        sentence = text[offsets[0]:offsets[-1]]
    else:
        sentence = ' '.join(words)
    return SentenceAnnotation(sentence, words,
                              lemmas=lemmas,
                              pos_tags=tags,
                              ner_tags=ners,
                              offsets=offsets,
                              dep_labels=labels,
                              dep_heads=heads)


def read_sentences(source, text=None):
    """
    Sentence annotations in a CoreNLP XML file, in document order

    Parameters
    ----------
    source : str or file object
        CoreNLP XML output
    text : str, optional
        Original document text (see `read_sentence`)
    """
    root = ET.parse(source).getroot()
    s_elts = sorted(root.findall('.//sentences/sentence'),
                    key=lambda s: int(s.get('id')))
    return [read_sentence(s, text) for s in s_elts]
