##
## Name:     idsplice.py
## Purpose:  Replace one element of a tag-soup document, chosen by its id.
##
## Copyright (C) 2009, Michael J. Fromberger, All Rights Reserved.
##
## Basic usage instructions:
##
## import idsplice
##
## doc = '<div id="a">one</div>\n<div id="b"><div>two</div></div>\n'
##
## idsplice.find_element_by_id(doc, 'div', 'b')
##   ==> element_span(start=22, end=54)
## idsplice.get_element_by_id(doc, 'div', 'b')
##   ==> '<div id="b"><div>two</div></div>'
## idsplice.replace_element_by_id(doc, 'div', 'b', '<div id="b">2</div>')
##   ==> '<div id="a">one</div>\n<div id="b">2</div>\n'
## idsplice.replace_element_by_id(doc, 'div', 'zzz', 'anything')
##   ==> doc (unchanged)
##
## The document is never parsed into a tree.  Only the opening and closing
## tags of the container element are found, and the result is spliced
## together from slices of the original text, so everything outside the
## replaced element comes back exactly as it went in.

__version__ = "1.0"

import collections, functools, logging

log = logging.getLogger(__name__)

# {{ Exception classes

class splice_error (Exception):
    pass

class scan_failed (splice_error):
    pass

# }}

# {{ Result types

# One opening ('open'), self-closing ('self') or closing ('close') tag of the
# container element.  For start tags, attribs is (start, end, elts) as built
# by markup_scanner.parse_attribs; for closing tags it is None.
tag_occurrence = collections.namedtuple(
    'tag_occurrence', 'kind start end attribs')

# The extent of a located element, from the "<" of its start tag up to one
# past the ">" of its matching end tag.
element_span = collections.namedtuple('element_span', 'start end')

# }}

# {{ @bounded(meth)

def bounded(meth):
    """Convert a scanner method taking a starting position and
    returning a tuple of (tag, endpos), so that the resulting method
    returns (tag, startpos, endpos).  A method returning None raises
    scan_failed instead.
    """
    def wrapper(self, start, *args, **kw):
        res = meth(self, start, *args, **kw)
        if res is None:
            raise scan_failed(meth.__name__, start, *args)
        return res[0], start, res[1]

    return functools.update_wrapper(wrapper, meth)

# }}

# {{ class markup_scanner

class markup_scanner (object):
    """Implements the permissive lexical rules shared by the tag scanner and
    the attribute parser.  Nothing here ever builds a tree; every result is
    a span of offsets into the input.

    Tag attributes are given as a list of tuples (start, end, info), where
    info is a dictionary with these keys:
      'name'   -- (start, end) of the attribute name.
      'value'  -- (kind, start, end) of the value, where kind is one of
        'none' for bare attributes,
        'unq'  for unquoted values,
        'str'  for quoted values, terminated (span includes the quotes),
        'ustr' for quoted values, unterminated.

    Options:
    case_matters -- if true, tag and attribute names are compared exactly;
                    otherwise they are compared without regard to case.
    """
    def __init__(self, src, **opts):
        """Create a new scanner using the string src as input."""
        if not isinstance(src, str):
            raise TypeError("input must be a string")
        self.input = src
        self.case_matters = opts.get('case_matters', False)

    def fold(self, name):
        """Normalize a tag or attribute name for comparison."""
        return name if self.case_matters else name.lower()

    def get_attributes(self, elts):
        """Build an attribute map from the attribute list of one start tag.

        Returns a dict from attribute name to value, in source order.  Quotes
        are removed from quoted values; bare attributes have the value ''.
        If a name is repeated, the first value wins.  If any value has an
        unterminated quotation, None is returned: the tag cannot be trusted.
        """
        result = {}
        for u, v, info in elts:
            kind, vs, ve = info['value']
            if kind == 'ustr':
                return None

            ns, ne = info['name']
            raw = self.input[vs:ve]
            if kind == 'str':
                raw = raw[1:-1] # remove quotation marks
            result.setdefault(self.fold(self.input[ns:ne]), raw)

        return result

    # --- Private methods ----------------------------------------------
    # Conventions:
    # scan_* methods return a tuple of "tag", start, end
    # parse_* methods return a tuple of "tag", start, end, data
    #
    # All methods should return a valid tuple or throw scan_failed.
    # The @bounded decorator can help you keep track of this.

    def get_char(self, p):
        return self.input[p : p + 1]

    @bounded
    def scan_string(self, p):
        t = self.input
        q = t[p]
        p += 1
        while self.get_char(p) not in (q, ''):
            p += 1

        if p < len(t):
            return 'str', p + 1
        else:
            return 'ustr', p # Unterminated string

    @bounded
    def scan_name(self, p, end_marks = ''):
        ig, u, v = self.scan_unquoted(p, '</=' + end_marks)
        return 'name', v

    @bounded
    def scan_unquoted(self, p, end_marks = '', allow_blank = False):
        s = p ; ends = '\x00"\'>' + end_marks

        while True:
            c = self.get_char(p)
            if (not c or
                c in ends or
                c.isspace() or
                ord(c) < 32):
                break
            p += 1

        ok = s <= p if allow_blank else s < p
        if ok:
            return 'unq', p

    @bounded
    def scan_space(self, p):
        while self.get_char(p).isspace():
            p += 1

        return 'ws', p

    @bounded
    def scan_literal(self, p, value):
        end = p + len(value)
        if self.input[p:end] == value:
            return 'lit', end

    @bounded
    def scan_comment(self, p):
        ig, u, v = self.scan_literal(p, '<!--')

        t = self.input
        while v < len(t):
            if t.startswith('-->', v):
                return 'com', v + 3

            v += 1

        # Unterminated comment
        return 'ucom', v

    def parse_attrib(self, p):
        ntag, ns, ne = self.scan_name(p)
        vtag, vs, ve = 'none', ne, ne
        try:
            ig, u, v = self.scan_space(ne)
            ig, u, v = self.scan_literal(v, '=')
            ig, u, v = self.scan_space(v)

            if self.get_char(v) in ('"', "'"):
                vtag, vs, ve = self.scan_string(v)
            else:
                vtag, vs, ve = self.scan_unquoted(v, '=', True)
        except scan_failed:
            pass

        return 'attr', p, ve, dict(
            name = (ns, ne),
            value = (vtag, vs, ve))

    def parse_attribs(self, p):
        data = []
        v = p
        while True:
            ig, u, v = self.scan_space(v)
            try:
                ig, u, v, info = self.parse_attrib(v)
                data.append((u, v, info))
            except scan_failed:
                break

        return 'attrs', p, v, data

    def parse_starttag(self, p):
        ig, u, v = self.scan_literal(p, '<')
        ntag, ns, ne = self.scan_name(v)
        atag, atts, atte, data = self.parse_attribs(ne)
        kind = 'open'

        if self.get_char(atte) == '/':
            kind = 'self'
            atte += 1
        if self.get_char(atte) != '>':
            raise scan_failed("parse_starttag", p)

        return kind, p, atte + 1, dict(
            name = (ns, ne),
            attribs = (atts, atte, data))

    def parse_endtag(self, p):
        ig, u, v = self.scan_literal(p, '</')
        ntag, ns, ne = self.scan_name(v)
        ig, u, v = self.scan_space(ne)

        if self.get_char(v) != '>':
            raise scan_failed("parse_endtag", p)

        return 'close', p, v + 1, dict(name = (ns, ne))

    def parse_comment(self, p):
        tag, ns, ne = self.scan_comment(p)
        return tag, ns, ne, None

    def parse_cdata(self, p):
        ig, ns, ne = self.scan_literal(p, '<![CDATA[')

        t = self.input
        c = t.find(']]>', ne)
        if c < 0:
            return 'udata', p, len(t), None
        return 'cdata', p, c + len(']]>'), None

    def parse_directive(self, p, end_mark):
        # p + 2 to skip past <! or <?
        ig, ns, ne = self.scan_name(p + 2, '?' if '?' in end_mark else '')

        t = self.input
        c = ne ; kind = 'udir'
        while not t.startswith(end_mark, c):
            if self.get_char(c) in ('', '<'): break
            c += 1
        else:
            kind = 'dir'

        end = c + len(end_mark) if kind == 'dir' else c
        return kind, p, end, None

    def parse_one(self, p):
        """Consume one token starting at offset p.  The token returned always
        ends after p, unless p is at the end of input.
        """
        t = self.input
        c = p
        if p >= len(t):
            return 'eof', p, p, None
        elif t[p] == '<':
            np = self.get_char(p + 1)
            try:
                if np == '!':
                    try:
                        return self.parse_comment(p)
                    except scan_failed: pass
                    try:
                        return self.parse_cdata(p)
                    except scan_failed: pass
                    return self.parse_directive(p, '>')
                elif np == '?':
                    return self.parse_directive(p, '?>')
                elif np == '/':
                    return self.parse_endtag(p)
                else:
                    return self.parse_starttag(p)
            except scan_failed:
                c += 1 # skip past an unconsumed "<"

        # Falling through to here means we're in text data
        while c < len(t) and t[c] != '<':
            c += 1

        return 'text', p, c, None

# }}

# {{ class tag_scanner

class tag_scanner (markup_scanner):
    """Finds the tags of one container element in a document.

    Usage:
      s = tag_scanner(input_string, 'div')
      for occ in s.scan():
         process(occ.kind, occ.start, occ.end)

    Only start and end tags whose name is exactly the container name are
    reported; a longer name that begins with it (e.g., <divider> for 'div')
    is a different element.  Text, comments, CDATA, directives, and the tags
    of all other elements are skipped.  A "<" that does not begin a complete
    construct, such as a truncated tag or one with an unterminated quotation,
    is treated as text and scanning resumes just after it.
    """
    def __init__(self, src, name, **opts):
        super(tag_scanner, self).__init__(src, **opts)
        if not isinstance(name, str):
            raise TypeError("tag name must be a string")
        self.name = self.fold(name)

    def scan(self, start_pos = 0):
        """Returns a generator that yields a tag_occurrence for each tag of
        the container element, in order of position, beginning at the given
        starting offset.  Thread-safe.
        """
        t = self.input
        p = start_pos
        while p < len(t):
            kind, start, end, data = self.parse_one(p)
            if kind in ('open', 'self', 'close'):
                ns, ne = data['name']
                if self.fold(t[ns:ne]) == self.name:
                    yield tag_occurrence(kind, start, end, data.get('attribs'))
            p = end

    def get_attributes(self, occ):
        """Return the attribute map of a tag_occurrence, or None if it is a
        closing tag or its attributes could not be parsed.
        """
        if occ.attribs is None:
            return None
        u, v, elts = occ.attribs
        return super(tag_scanner, self).get_attributes(elts)

# }}

# {{ parse_attributes(text, **opts)

def parse_attributes(text, **opts):
    """Parse the raw attribute text of a start tag (the part between the tag
    name and the closing ">") into a dict of attribute name to value.

    Returns None if the text cannot be read as a list of attributes, e.g.,
    because of an unterminated quotation or stray characters.
    """
    s = markup_scanner(text, **opts)
    ig, u, v, elts = s.parse_attribs(0)
    if text[v:] not in ('', '/'):
        return None
    return s.get_attributes(elts)

# }}

# {{ class span_locator

class span_locator (object):
    """Locates the element whose identifier attribute has a given value.

    The first start tag of the container element whose id attribute equals
    the target (exactly, including case) begins the span.  After that, each
    further start tag of the container deepens the nesting and each end tag
    undoes one level; the end tag that brings the depth back to zero ends the
    span.  A self-closing target is a span by itself.  Self-closing tags
    nested inside the span do not affect the depth.

    Options:
    id_attribute -- name of the identifier attribute (default ID_ATTRIBUTE).
    case_matters -- as for markup_scanner.
    """
    # The element tracked when no name is given.
    CONTAINER_TAG = 'div'

    # The attribute whose value identifies an element.
    ID_ATTRIBUTE = 'id'

    def __init__(self, name = None, **opts):
        self.name = self.CONTAINER_TAG if name is None else name
        self.opts = opts
        self.id_attribute = opts.get('id_attribute', self.ID_ATTRIBUTE)
        if not opts.get('case_matters', False):
            self.id_attribute = self.id_attribute.lower()

    def locate(self, src, target_id):
        """Return the element_span of the element in src whose id is
        target_id, or None if there is no such element or its end tag is
        missing.
        """
        if not isinstance(target_id, str):
            raise TypeError("target id must be a string")

        scanner = tag_scanner(src, self.name, **self.opts)
        start = None
        depth = 0
        for occ in scanner.scan():
            if depth == 0:
                if occ.kind == 'close' or not self.is_target(
                        scanner, occ, target_id):
                    continue
                if occ.kind == 'self':
                    return self.found(occ.start, occ.end, target_id)
                start, depth = occ.start, 1
            elif occ.kind == 'open':
                depth += 1
            elif occ.kind == 'close':
                depth -= 1
                if depth == 0:
                    return self.found(start, occ.end, target_id)

        if start is None:
            log.debug("no <%s> with %s=%r", self.name,
                      self.id_attribute, target_id)
        else:
            log.debug("<%s %s=%r> at %d is never closed", self.name,
                      self.id_attribute, target_id, start)
        return None

    def is_target(self, scanner, occ, target_id):
        attrs = scanner.get_attributes(occ)
        return attrs is not None and attrs.get(self.id_attribute) == target_id

    def found(self, start, end, target_id):
        log.debug("found <%s %s=%r> at %d..%d", self.name,
                  self.id_attribute, target_id, start, end)
        return element_span(start, end)

# }}

# {{ patch(src, span, replacement)

def patch(src, span, replacement):
    """Return src with the text covered by span replaced by replacement.  If
    span is None, src is returned unchanged.
    """
    if not isinstance(replacement, str):
        raise TypeError("replacement must be a string")
    if span is None:
        return src

    start, end = span
    return src[:start] + replacement + src[end:]

# }}

# {{ Public operations

def find_element_by_id(document, name, target_id, **opts):
    """Return the element_span of the <name> element whose id is target_id,
    or None.  Options are as for span_locator.
    """
    return span_locator(name, **opts).locate(document, target_id)

def get_element_by_id(document, name, target_id, **opts):
    """Return the source text of the <name> element whose id is target_id,
    from its start tag through its end tag, or None.
    """
    span = find_element_by_id(document, name, target_id, **opts)
    if span is None:
        return None
    return document[span.start:span.end]

def replace_element_by_id(document, name, target_id, replacement, **opts):
    """Replace the <name> element whose id is target_id, start tag through
    matching end tag, with the replacement text.  All text outside that
    element is preserved exactly.  If no such element exists, or its end tag
    is missing, the document is returned unchanged.
    """
    span = find_element_by_id(document, name, target_id, **opts)
    return patch(document, span, replacement)

def patch_element_by_id(document, target_id, replacement, **opts):
    """As replace_element_by_id, using the default container element."""
    return replace_element_by_id(document, None, target_id, replacement,
                                 **opts)

# }}

__all__ = (
    'markup_scanner', 'tag_scanner', 'span_locator',
    'tag_occurrence', 'element_span',

    'parse_attributes', 'patch',
    'find_element_by_id', 'get_element_by_id',
    'replace_element_by_id', 'patch_element_by_id',

    'splice_error')

# Here there be dragons
