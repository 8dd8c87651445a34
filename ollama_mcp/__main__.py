from ollama_mcp.main import main

raise SystemExit(main())
