# Label compliance analysis session and comparison engine
