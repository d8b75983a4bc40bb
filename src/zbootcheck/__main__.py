from zbootcheck.cli import main

main()
