from openclaw_railway.main import main

main()
