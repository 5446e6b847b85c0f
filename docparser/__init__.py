"""
The docparser package runs a stream of documents through an annotation
pipeline (tokenization, sentence splitting, part of speech tagging,
lemmatization, named entity tagging, dependency parsing) and writes out
the per-token annotations, one sentence at a time.

Layers
~~~~~~
Working our way up:

* data (docparser.annotation): documents, and the parallel per-token
  arrays an engine produces for each sentence

* input (docparser.input): JSON-lines and TSV framings, read lazily into
  documents; lines we cannot read are skipped

* engines (docparser.external): the tools doing the actual annotation
  (NLTK in-process, or Stanford CoreNLP as a subprocess)

* output (docparser.tsv_format, docparser.column_writer, docparser.sink):
  wide TSV rows with array literal columns, or one JSON lines file per
  annotation type

* driver (docparser.pipeline): one document at a time, in input order;
  a document the engine fails on is logged and skipped, the batch goes on

On top of this sit the command line (docparser.main) and the HTTP service
(docparser.server) ::

          main            server
            |               |
            v               v
         pipeline  ---> external
         /      \\
      input    sink -> tsv_format / column_writer
"""
