#!/usr/bin/env python
##
## Name:     splice.py
## Purpose:  Wrapper script to replace one element of a document by its id.
##
## Copyright (C) 2009, Michael J. Fromberger, All Rights Reserved.
##
## Read the document, splice in the replacement for the element whose id
## matches, and write the result.  Text outside the element is untouched.
##
import getopt, io, logging, sys
import idsplice

log = logging.getLogger('splice')

def usage(opts):
    print("Usage: splice.py [options] <file> <id>", file=sys.stderr)
    if opts:
        print("\nOptions:\n"
              "  -e/--encoding <enc>     : specify input encoding.\n"
              "  -t/--tag <name>         : container element (default %s).\n"
              "  -r/--replacement <file> : read replacement from file.\n"
              "  -o/--output <file>      : write result to file.\n"
              "  -i/--in-place           : overwrite the input file.\n"
              "  -x/--extract            : print the element, don't replace.\n"
              "  -v/--verbose            : log what is going on.\n"
              "  --help                  : print this help message.\n"
              % idsplice.span_locator.CONTAINER_TAG,
              file=sys.stdout)
        return 0
    else:
        print("  [use --help for a summary of options]", file=sys.stderr)
        return 1

def read_text(path, encoding):
    # newline='' keeps line endings exactly as they are on disk.
    with io.open(path, encoding = encoding, newline = '') as f:
        return f.read()

def write_text(path, text, encoding):
    with io.open(path, 'w', encoding = encoding, newline = '') as f:
        f.write(text)

def main(argv):
    opt_encoding = 'utf-8'
    opt_tag = idsplice.span_locator.CONTAINER_TAG
    opt_replacement = None
    opt_output = None
    opt_inplace = False
    opt_extract = False
    opt_verbose = False
    try:
        opts, args = getopt.getopt(
            argv, 'e:t:r:o:ixv', ('encoding=', 'tag=', 'replacement=',
                                  'output=', 'in-place', 'extract',
                                  'verbose', 'help'))
    except getopt.GetoptError as e:
        print("Error: %s" % e, file=sys.stderr)
        return usage(False)

    # Interpret command-line options.
    for opt, arg in opts:
        if opt in ('-e', '--encoding'):
            opt_encoding = arg
        elif opt in ('-t', '--tag'):
            opt_tag = arg
        elif opt in ('-r', '--replacement'):
            opt_replacement = arg
        elif opt in ('-o', '--output'):
            opt_output = arg
        elif opt in ('-i', '--in-place'):
            opt_inplace = True
        elif opt in ('-x', '--extract'):
            opt_extract = True
        elif opt in ('-v', '--verbose'):
            opt_verbose = True
        elif opt == '--help':
            return usage(True)

    if len(args) != 2:
        return usage(False)
    if opt_inplace and (opt_extract or opt_output):
        print("Error: --in-place cannot be combined with "
              "--extract or --output", file=sys.stderr)
        return usage(False)

    if opt_verbose:
        logging.basicConfig(level = logging.DEBUG,
                            format = '- %(name)s: %(message)s')

    path, target_id = args
    data = read_text(path, opt_encoding)
    log.debug("read %d character%s from %s", len(data),
              "" if len(data) == 1 else "s", path)

    span = idsplice.find_element_by_id(data, opt_tag, target_id)
    if span is None:
        print("- No <%s> with id %r in %s" % (opt_tag, target_id, path),
              file=sys.stderr)

    if opt_extract:
        if span is None:
            return 2
        result = data[span.start:span.end]
    else:
        if opt_replacement is None:
            replacement = sys.stdin.read()
        else:
            replacement = read_text(opt_replacement, opt_encoding)
        result = idsplice.patch(data, span, replacement)

    if opt_inplace:
        if span is not None:
            write_text(path, result, opt_encoding)
    elif opt_output is not None:
        write_text(opt_output, result, opt_encoding)
    else:
        sys.stdout.write(result)

    return 0 if span is not None else 2

if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))

# Here there be dragons
