from pic2quiz.cli import main

raise SystemExit(main())
