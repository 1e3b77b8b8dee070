from weathervoice.cli import main

raise SystemExit(main())
