"""
Command line options and the configuration they boil down to
"""

# License: BSD3

import os

from docparser.external.engine import check_stages, parse_stages

DEFAULT_ANNOTATORS = 'tokenize,cleanxml,ssplit,pos,lemma,ner'
FORMATS_IN = ['json', 'tsv']
FORMATS_OUT = ['tsv', 'column']
ENGINES = ['nltk', 'corenlp']


class ConfigurationError(Exception):
    """
    Missing or inconsistent settings; we cannot start
    """
    def __init__(self, *args, **kw):
        super().__init__(*args, **kw)


class Config:
    """
    Settings for a parsing run (batch or server).

    Attributes mirror the command line flags; see `config_argparser`
    """
    def __init__(self,
                 file_name=None,
                 format_in='json',
                 id_key='id',
                 text_key='text',
                 id_column=0,
                 text_column=1,
                 max_length=100,
                 annotators=DEFAULT_ANNOTATORS,
                 engine='nltk',
                 corenlp_dir=None,
                 format_out='tsv',
                 output_dir=None,
                 server_port=None,
                 stats=False):
        self.file_name = file_name
        self.format_in = format_in
        self.id_key = id_key
        self.text_key = text_key
        self.id_column = id_column
        self.text_column = text_column
        self.max_length = max_length
        self.annotators = annotators
        self.engine = engine
        self.corenlp_dir = corenlp_dir
        self.format_out = format_out
        self.output_dir = output_dir
        self.server_port = server_port
        self.stats = stats

    @classmethod
    def from_args(cls, args):
        "configuration from parsed command line arguments"
        return cls(file_name=args.file,
                   format_in=args.formatIn,
                   id_key=args.idKey,
                   text_key=args.valueKey,
                   id_column=args.idColumn,
                   text_column=args.textColumn,
                   max_length=args.maxLength,
                   annotators=args.annotators,
                   engine=args.engine,
                   corenlp_dir=args.corenlp_dir,
                   format_out=args.formatOut,
                   output_dir=args.outputDir,
                   server_port=args.serverPort,
                   stats=args.stats)

    @property
    def stages(self):
        "annotator stages, in pipeline order"
        try:
            return parse_stages(self.annotators)
        except ValueError as oops:
            raise ConfigurationError(str(oops))

    @property
    def parsed_path(self):
        "TSV output file (None if writing to stdout)"
        if self.file_name is None:
            return None
        return self.file_name + '.parsed'

    @property
    def failed_path(self):
        "failure log (None if reporting on stderr)"
        if self.file_name is None:
            return None
        return self.file_name + '.failed'

    def validate(self, supported_stages=None):
        """
        Raise `ConfigurationError` if we cannot run with these settings
        """
        if self.format_in not in FORMATS_IN:
            raise ConfigurationError('Unknown input format: %s' %
                                     self.format_in)
        if self.format_out not in FORMATS_OUT:
            raise ConfigurationError('Unknown output format: %s' %
                                     self.format_out)
        if self.engine not in ENGINES:
            raise ConfigurationError('Unknown engine: %s' % self.engine)
        if self.id_column < 0 or self.text_column < 0:
            raise ConfigurationError('TSV columns must not be negative')
        if self.max_length is not None and self.max_length < 1:
            raise ConfigurationError('Maximum length must be positive')
        problems = check_stages(self.stages, supported_stages)
        if problems:
            raise ConfigurationError('Bad annotators: ' + '; '.join(problems))
        if self.engine == 'corenlp' and not self.corenlp_dir:
            raise ConfigurationError('The corenlp engine needs --corenlp-dir')
        if self.server_port is not None:
            return
        if self.file_name is not None and not os.path.exists(self.file_name):
            raise ConfigurationError('Input file does not exist: ' +
                                     self.file_name)
        if self.format_out == 'column' and not self.output_dir:
            raise ConfigurationError('Column output needs --outputDir')


def config_argparser(parser):
    """
    Add our flags to an argparser.
    """
    parser.add_argument('--formatIn', '-i', choices=FORMATS_IN,
                        default='json',
                        help='json or tsv (default: json)')
    parser.add_argument('--valueKey', '-v', metavar='KEY', default='text',
                        help='JSON key that contains the document, '
                        'for example "documents.text" (default: text)')
    parser.add_argument('--idKey', '-k', metavar='KEY', default='id',
                        help='JSON key that contains the document id, '
                        'for example "documents.id" (default: id)')
    parser.add_argument('--idColumn', metavar='N', type=int, default=0,
                        help='TSV column (0-based) holding the document id')
    parser.add_argument('--textColumn', metavar='N', type=int, default=1,
                        help='TSV column (0-based) holding the document')
    parser.add_argument('--maxLength', '-l', metavar='N', type=int,
                        default=100,
                        help='Maximum length of sentences to parse '
                        '(makes things faster) (default: 100)')
    parser.add_argument('--annotators', '-a', default=DEFAULT_ANNOTATORS,
                        help='Annotators (default: %(default)s, '
                        'minimum: tokenize,ssplit)')
    parser.add_argument('--engine', '-e', choices=ENGINES, default='nltk',
                        help='Annotation engine (default: nltk)')
    parser.add_argument('--corenlp-dir', metavar='DIR',
                        help='CoreNLP distribution (corenlp engine)')
    parser.add_argument('--file', '-f', metavar='FILE',
                        help='Input file name (default: stdin)')
    parser.add_argument('--formatOut', '-o', choices=FORMATS_OUT,
                        default='tsv',
                        help='One TSV row per sentence, or one file per '
                        'annotation type (default: tsv)')
    parser.add_argument('--outputDir', metavar='DIR',
                        help='Directory for column output')
    parser.add_argument('--serverPort', '-p', metavar='PORT', type=int,
                        help='Run as an HTTP service')
    parser.add_argument('--stats', action='store_true',
                        help='Print a summary of the run on stderr')
