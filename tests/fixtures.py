"""
Test fixtures for digraph.

This module provides sample source code and helper functions
for testing the graph library and its scanners.
"""

from pathlib import Path

from digraph import Edge, Node


# Perl sources
PERL_SCRIPT = '''#!/usr/bin/perl -w
use strict;
use vars qw($VERSION);
use 5.006;
use Getopt::Long;
use My::Util;
require 'helpers.pl';

=head1 NAME

use Inside::Pod;

=cut

require Missing::Module;
print "done\\n";
__END__
use After::End;
'''

PERL_UTIL = '''package My::Util;
use strict;
use Getopt::Long;
1;
'''

PERL_HELPERS = '''require "My/Util.pm";
use My::Util;
1;
'''

PERL_GETOPT = '''package Getopt::Long;
1;
'''

# Python sources
PYTHON_MAIN = '''import os
import app.models
import app.views as views
from app.services.mail import send


def run():
    import json
    return send(views.render(app.models.User()))
'''

PYTHON_MODELS = '''class User:
    pass
'''

PYTHON_VIEWS = '''from . import models
from .helpers import escape


def render(obj):
    return escape(str(obj))
'''

PYTHON_HELPERS = '''def escape(text):
    return text
'''

PYTHON_MAIL = '''from .. import models
from ... import settings


def send(message):
    return message
'''

PYTHON_SETTINGS = '''DEBUG = False
'''

PYTHON_BROKEN = '''def broken(:
    pass
'''


def write_tree(base: Path, files: dict[str, str]) -> None:
    """Write a mapping of relative path -> content under base."""
    for relative, content in files.items():
        path = base / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")


def build_tree() -> Node:
    """Build root -> child1, root -> child2 with fixed IDs."""
    root = Node(id="root", label="root")
    child1 = Node(id="child1", label="child1")
    child2 = Node(id="child2", label="child2")
    Edge(root, child1, id="e1")
    Edge(root, child2, id="e2")
    return root
